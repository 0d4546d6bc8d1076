import pytest

from matching.cache import AnalysisCache
from schemas import ModelDescriptor, ResolverState, ServiceStatus


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


def available_status(name="phi:latest"):
    return ServiceStatus(
        state=ResolverState.AVAILABLE,
        selected_model=ModelDescriptor(name=name, size_label="Unknown", description="test model"),
        available_models=[name],
    )


@pytest.fixture
def cache():
    return AnalysisCache()
