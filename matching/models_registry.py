import re
import logging
from typing import List, Optional, Sequence

import requests

import config
from schemas import ModelDescriptor, ResolverState, ServiceStatus

logger = logging.getLogger(__name__)

# Order of preference, fastest first
FAST_MODELS = [
    "phi",        # Microsoft Phi, very fast, good at structured output
    "gemma2:2b",  # Google Gemma 2 2B
    "mistral",    # Mistral 7B, balance of speed and quality
    "llama2",
    "gemma2",
]

NO_MODEL_HINT = (
    "Ollama is running but no suitable models are available. "
    "Run 'ollama pull phi' or 'ollama pull mistral' to download a fast model."
)


def size_label(model_name: str) -> str:
    m = re.search(r"[0-9]+b", model_name, re.IGNORECASE)
    return m.group(0).upper() if m else "Unknown"


def describe_model(model_name: str) -> str:
    name = model_name.lower()
    if "phi" in name:
        return "Microsoft's Phi (very fast, efficient model)"
    if "gemma2" in name:
        return "Google's Gemma 2 (compact, efficient model)"
    if "mistral" in name:
        return "Mistral AI's model (good balance of speed and quality)"
    if "llama2" in name:
        return "Meta's Llama 2 (faster than Llama 3)"
    return "AI language model"


def _matches(installed: str, preferred: str) -> bool:
    return (
        installed == preferred
        or installed.startswith(f"{preferred}:")
        or installed.startswith(f"{preferred}-")
    )


def select_model(installed: Sequence[str], preferences: Sequence[str] = FAST_MODELS) -> Optional[ModelDescriptor]:
    """Pick the installed model for the highest ranked preference, or None."""
    for preferred in preferences:
        for name in installed:
            if _matches(name, preferred):
                return ModelDescriptor(
                    name=name,
                    size_label=size_label(name),
                    description=describe_model(name),
                )
    return None


def check_ollama_status(base_url: Optional[str] = None, timeout: Optional[float] = None) -> ServiceStatus:
    """
    Probe the Ollama server for installed models and pick the fastest one.

    Failures are reported in the returned status, never raised or retried.
    """
    url = f"{base_url or config.OLLAMA_BASE_URL}/tags"
    probe_timeout = timeout if timeout is not None else config.OLLAMA_PROBE_TIMEOUT

    try:
        response = requests.get(url, timeout=probe_timeout)
    except requests.exceptions.Timeout:
        logger.warning("Ollama probe timed out after %ss", probe_timeout)
        return ServiceStatus(state=ResolverState.SERVICE_DOWN, error="Connection to Ollama timed out")
    except requests.exceptions.RequestException as e:
        logger.warning("Ollama probe failed: %s", e)
        return ServiceStatus(state=ResolverState.SERVICE_DOWN, error=str(e))

    if not response.ok:
        return ServiceStatus(
            state=ResolverState.SERVICE_DOWN,
            error=f"Ollama returned status {response.status_code}",
        )

    try:
        payload = response.json()
    except ValueError:
        return ServiceStatus(state=ResolverState.SERVICE_DOWN, error="Ollama returned an unreadable model list")

    models = (payload.get("models") or []) if isinstance(payload, dict) else []
    available: List[str] = [m["name"] for m in models if isinstance(m, dict) and m.get("name")]

    selected = select_model(available)
    if selected is None:
        return ServiceStatus(
            state=ResolverState.NO_SUITABLE_MODEL,
            available_models=available,
            error=NO_MODEL_HINT,
        )

    logger.info("Selected model %s (%s)", selected.name, selected.size_label)
    return ServiceStatus(
        state=ResolverState.AVAILABLE,
        selected_model=selected,
        available_models=available,
    )
