import os
import logging
from dotenv import load_dotenv

load_dotenv()
logger = logging.getLogger(__name__)


def _env_number(name: str, default, cast=float):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default


OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/api").rstrip("/")
# Local inference on small hardware can take many minutes
OLLAMA_REQUEST_TIMEOUT = _env_number("OLLAMA_REQUEST_TIMEOUT", 1200.0)
OLLAMA_PROBE_TIMEOUT = _env_number("OLLAMA_PROBE_TIMEOUT", 10.0)
OLLAMA_MAX_CONCURRENCY = max(1, _env_number("OLLAMA_MAX_CONCURRENCY", 1, cast=int))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
