class MatcherError(Exception):
    """Base class for failures that abort a match request."""


class ServiceUnavailable(MatcherError):
    """Ollama is down, or up without any model from the preference list."""

    def __init__(self, status):
        self.status = status
        super().__init__(status.error or "Ollama is not running or no suitable model is available")


class InferenceTimeout(MatcherError):
    pass


class InferenceTransportError(MatcherError):
    pass
