import logging
from typing import Callable, Optional

from matching.cache import AnalysisCache, analysis_cache
from matching.errors import ServiceUnavailable
from matching.models_registry import check_ollama_status
from matching.ollama_client import generate_match
from matching.prompts import build_match_prompt
from matching.recovery import recover_match_result
from schemas import MatchResult, ServiceStatus

logger = logging.getLogger(__name__)


def match_resume(
    resume_text: str,
    jd_text: str,
    cache: Optional[AnalysisCache] = None,
    resolver: Optional[Callable[[], ServiceStatus]] = None,
    invoker: Optional[Callable[[str, str], str]] = None,
) -> MatchResult:
    """
    Score a resume against a job description with the fastest installed model.

    A cached result for the exact same pair is returned as-is, without
    touching the model server. Resolver and invocation failures raise and
    leave the cache untouched; any response that does come back is recovered
    into a MatchResult and cached, degraded or not.
    """
    cache = cache if cache is not None else analysis_cache
    resolver = resolver or check_ollama_status
    invoker = invoker or generate_match

    cached = cache.get(resume_text, jd_text)
    if cached is not None:
        logger.info("Returning cached result")
        return cached

    status = resolver()
    if not status.model_loaded or status.selected_model is None:
        logger.error("Ollama unavailable (%s): %s", status.state.value, status.error)
        raise ServiceUnavailable(status)

    model_name = status.selected_model.name
    logger.info("Using model: %s", model_name)

    prompt = build_match_prompt(resume_text, jd_text)
    raw = invoker(model_name, prompt)

    result = recover_match_result(raw, model_name)
    cache.set(resume_text, jd_text, result)
    return result
