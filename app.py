from __future__ import annotations
import json
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

import config
from schemas import ChatReply, ChatRequest, ErrorOut, MatchRequest, MatchResult, ServiceStatus
from matching.errors import InferenceTimeout, InferenceTransportError, ServiceUnavailable
from matching.models_registry import check_ollama_status
from matching.ollama_client import chat, stream_chat
from matching.pipeline import match_resume

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = (
    "Analysis timed out. Try again with a shorter resume or job description, "
    "or verify the Ollama service is running."
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Ollama endpoint: %s", config.OLLAMA_BASE_URL)
    logger.info(
        "Timeouts: request=%ss probe=%ss, max concurrent model calls=%s",
        config.OLLAMA_REQUEST_TIMEOUT, config.OLLAMA_PROBE_TIMEOUT, config.OLLAMA_MAX_CONCURRENCY,
    )
    yield
    logger.info("Application shutting down.")


app = FastAPI(title="AI Resume Matcher (Ollama)", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # OK for demo, restrict for prod
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorOut(error=message).model_dump())


def _resolve_chat_model(requested: str | None) -> str:
    if requested:
        return requested
    status = check_ollama_status()
    if not status.model_loaded:
        raise ServiceUnavailable(status)
    return status.selected_model.name


# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------
@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/ollama/status", response_model=ServiceStatus, response_model_exclude_none=True)
def ollama_status():
    """Report whether Ollama is up and which model a match would use."""
    return check_ollama_status()


@app.post(
    "/match",
    response_model=MatchResult,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorOut}, 502: {"model": ErrorOut}, 503: {"model": ErrorOut}, 504: {"model": ErrorOut}},
)
def match(req: MatchRequest):
    if not req.resume_text.strip() or not req.job_description_text.strip():
        return _error(400, "Resume text and job description are required.")

    try:
        return match_resume(req.resume_text, req.job_description_text)
    except ServiceUnavailable as e:
        return _error(503, str(e))
    except InferenceTimeout:
        return _error(504, TIMEOUT_MESSAGE)
    except InferenceTransportError as e:
        return _error(502, str(e))


@app.post("/chat", response_model=ChatReply, responses={503: {"model": ErrorOut}, 504: {"model": ErrorOut}})
def chat_relay(req: ChatRequest):
    """Forward a conversation to the local model and return its reply."""
    messages = [m.model_dump() for m in req.messages]
    try:
        model = _resolve_chat_model(req.model)
        reply = chat(model, messages)
    except ServiceUnavailable as e:
        return _error(503, str(e))
    except InferenceTimeout as e:
        return _error(504, str(e))
    except InferenceTransportError as e:
        logger.error("Error in chat relay: %s", e)
        return _error(502, str(e))
    return ChatReply(response=reply, model_used=model)


@app.post("/chat/stream")
def chat_stream(req: ChatRequest):
    messages = [m.model_dump() for m in req.messages]
    try:
        model = _resolve_chat_model(req.model)
    except ServiceUnavailable as e:
        return _error(503, str(e))

    def events():
        try:
            for content in stream_chat(model, messages):
                yield f"data: {json.dumps({'content': content})}\n\n"
        except (InferenceTimeout, InferenceTransportError) as e:
            logger.error("Error in chat stream: %s", e)
            yield f"data: {json.dumps({'error': str(e)})}\n\n"

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
