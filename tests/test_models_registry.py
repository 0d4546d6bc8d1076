import requests

from conftest import FakeResponse
from matching import models_registry
from matching.models_registry import check_ollama_status, describe_model, select_model, size_label
from schemas import ResolverState


def _tags(*names):
    return {"models": [{"name": n} for n in names]}


def test_preference_order_beats_installed_order():
    selected = select_model(["mistral", "phi:latest", "gemma2"])
    assert selected.name == "phi:latest"


def test_prefix_rules():
    assert select_model(["phi-2"]).name == "phi-2"
    assert select_model(["gemma2:2b-instruct"]).name == "gemma2:2b-instruct"
    # "phi3" is neither "phi", "phi:..." nor "phi-..."
    assert select_model(["phi3"]) is None
    assert select_model(["llama3"]) is None


def test_gemma2_2b_ranks_above_mistral():
    assert select_model(["mistral:7b", "gemma2:2b"]).name == "gemma2:2b"


def test_size_label():
    assert size_label("mistral:7b") == "7B"
    assert size_label("gemma2:2B-instruct") == "2B"
    assert size_label("phi:latest") == "Unknown"


def test_describe_model():
    assert "Phi" in describe_model("phi:latest")
    assert "Mistral" in describe_model("mistral")
    assert describe_model("something-else") == "AI language model"


def test_status_available(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse(payload=_tags("mistral", "phi:latest", "gemma2"))

    monkeypatch.setattr(models_registry.requests, "get", fake_get)
    status = check_ollama_status(base_url="http://ollama:11434/api", timeout=3)

    assert calls == [("http://ollama:11434/api/tags", 3)]
    assert status.state == ResolverState.AVAILABLE
    assert status.running and status.model_loaded
    assert status.selected_model.name == "phi:latest"
    assert status.selected_model.size_label == "Unknown"
    assert status.available_models == ["mistral", "phi:latest", "gemma2"]


def test_status_no_suitable_model(monkeypatch):
    monkeypatch.setattr(
        models_registry.requests, "get",
        lambda url, timeout: FakeResponse(payload=_tags("llama3:70b", "qwen2")),
    )
    status = check_ollama_status()
    assert status.state == ResolverState.NO_SUITABLE_MODEL
    assert status.running and not status.model_loaded
    assert status.selected_model is None
    assert status.available_models == ["llama3:70b", "qwen2"]
    assert "ollama pull phi" in status.error


def test_status_timeout(monkeypatch):
    def fake_get(url, timeout):
        raise requests.exceptions.ConnectTimeout("slow")

    monkeypatch.setattr(models_registry.requests, "get", fake_get)
    status = check_ollama_status()
    assert status.state == ResolverState.SERVICE_DOWN
    assert not status.running
    assert status.error == "Connection to Ollama timed out"


def test_status_connection_refused(monkeypatch):
    def fake_get(url, timeout):
        raise requests.exceptions.ConnectionError("connection refused")

    monkeypatch.setattr(models_registry.requests, "get", fake_get)
    status = check_ollama_status()
    assert status.state == ResolverState.SERVICE_DOWN
    assert "connection refused" in status.error


def test_status_http_error(monkeypatch):
    monkeypatch.setattr(models_registry.requests, "get", lambda url, timeout: FakeResponse(status_code=500))
    status = check_ollama_status()
    assert status.state == ResolverState.SERVICE_DOWN
    assert status.error == "Ollama returned status 500"


def test_descriptor_serializes_with_camel_case():
    descriptor = select_model(["phi"])
    assert descriptor.model_dump(by_alias=True) == {
        "name": "phi",
        "sizeLabel": "Unknown",
        "description": describe_model("phi"),
    }
