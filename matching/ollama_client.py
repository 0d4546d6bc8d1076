import json
import time
import logging
import threading
import concurrent.futures
from typing import Dict, Iterator, List, Optional

import requests

import config
from matching.errors import InferenceTimeout, InferenceTransportError

logger = logging.getLogger(__name__)

# Deterministic, short generation; "}" stops as soon as the JSON object closes
MATCH_OPTIONS = {
    "temperature": 0.0,
    "top_p": 0.8,
    "num_predict": 500,
    "stop": ["}"],
}

# One local model server cannot usefully serve many requests at once
_admission = threading.BoundedSemaphore(config.OLLAMA_MAX_CONCURRENCY)


def _timeout_message(bound: float) -> str:
    return f"Ollama did not answer within {bound:g}s"


def _acquire_slot(bound: float, model: str) -> None:
    if not _admission.acquire(timeout=bound):
        logger.error("No free Ollama slot within %ss (model=%s)", bound, model)
        raise InferenceTimeout(_timeout_message(bound))


def chat(
    model: str,
    messages: List[Dict[str, str]],
    options: Optional[dict] = None,
    timeout: Optional[float] = None,
    base_url: Optional[str] = None,
) -> str:
    """
    Send one non-streaming chat request to Ollama and return the reply text.

    ``timeout`` is one wall-clock budget covering both the wait for an
    admission slot and the call itself. The call runs on a worker thread;
    when the budget runs out the caller stops waiting, the session is closed
    and InferenceTimeout is raised. The worker's socket is still bounded by
    the same read timeout, so it is released no later than one quiet read
    interval after the server stops sending.
    """
    bound = timeout if timeout is not None else config.OLLAMA_REQUEST_TIMEOUT
    deadline = time.monotonic() + bound
    url = f"{base_url or config.OLLAMA_BASE_URL}/chat"
    payload = {"model": model, "messages": messages, "stream": False}
    if options:
        payload["options"] = options

    _acquire_slot(bound, model)
    try:
        remaining = max(deadline - time.monotonic(), 0.001)
        response = _post(url, payload, model, bound, remaining)
    finally:
        _admission.release()

    if not response.ok:
        raise InferenceTransportError(f"Ollama API error: {response.text}")

    try:
        return response.json()["message"]["content"]
    except (ValueError, KeyError, TypeError) as e:
        raise InferenceTransportError("Ollama returned no message content") from e


def _post(url: str, payload: dict, model: str, bound: float, remaining: float):
    session = requests.Session()
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    future = executor.submit(session.post, url, json=payload, timeout=remaining)
    try:
        return future.result(timeout=remaining)
    except concurrent.futures.TimeoutError as e:
        future.cancel()
        logger.error("Request to Ollama aborted after %ss (model=%s)", bound, model)
        raise InferenceTimeout(_timeout_message(bound)) from e
    except requests.exceptions.Timeout as e:
        logger.error("Request to Ollama timed out (model=%s)", model)
        raise InferenceTimeout(_timeout_message(bound)) from e
    except requests.exceptions.RequestException as e:
        logger.error("Ollama transport failure: %s", e)
        raise InferenceTransportError(str(e)) from e
    finally:
        executor.shutdown(wait=False)
        session.close()


def generate_match(model: str, prompt: str, timeout: Optional[float] = None) -> str:
    return chat(
        model,
        [{"role": "user", "content": prompt}],
        options=MATCH_OPTIONS,
        timeout=timeout,
    )


def stream_chat(
    model: str,
    messages: List[Dict[str, str]],
    timeout: Optional[float] = None,
    base_url: Optional[str] = None,
) -> Iterator[str]:
    """Yield reply fragments from a streaming Ollama chat, skipping unreadable lines."""
    bound = timeout if timeout is not None else config.OLLAMA_REQUEST_TIMEOUT
    url = f"{base_url or config.OLLAMA_BASE_URL}/chat"
    payload = {"model": model, "messages": messages, "stream": True}

    _acquire_slot(bound, model)
    try:
        try:
            with requests.post(url, json=payload, stream=True, timeout=bound) as response:
                if not response.ok:
                    raise InferenceTransportError(f"Ollama API error: {response.text}")
                for line in response.iter_lines(decode_unicode=True):
                    if not line or not line.strip():
                        continue
                    try:
                        chunk = json.loads(line)
                    except ValueError:
                        chunk = None
                    if not isinstance(chunk, dict):
                        logger.warning("Skipping unreadable stream line: %.80s", line)
                        continue
                    content = (chunk.get("message") or {}).get("content")
                    if content:
                        yield content
                    if chunk.get("done"):
                        break
        except requests.exceptions.Timeout as e:
            raise InferenceTimeout(_timeout_message(bound)) from e
        except requests.exceptions.RequestException as e:
            raise InferenceTransportError(str(e)) from e
    finally:
        _admission.release()
