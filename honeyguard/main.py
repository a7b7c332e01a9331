"""FastAPI entry point. Wires the analysis engine, session store, callback
and cognitive providers into the HTTP API.

Exposes GET / (health), /api/honeypot (conversation endpoint),
/api/voice-detection, /api/screenshot and the /api/sessions routes.
"""

import base64
import binascii
import json
import logging
import time
import uuid
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from honeyguard import __version__
from honeyguard.auth import verify_api_key
from honeyguard.callback import (
    build_callback_payload,
    is_ready_for_submission,
    pending,
    retry_pending_async,
    submit_final_result,
)
from honeyguard.engine import engine
from honeyguard.memory import (
    STATUS_SUBMITTED,
    InMemorySessionStore,
    SessionStore,
    complete_session,
    record_analysis,
)
from honeyguard.models import (
    HoneypotRequest,
    HoneypotResponse,
    ScreenshotRequest,
    VoiceDetectionRequest,
)
from honeyguard.providers import CognitiveProvider, build_provider
from honeyguard.replies import GREETING_REPLY, generate_reply
from honeyguard.results import AnalysisResult
from honeyguard.settings import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "HoneyGuard Scam Detection API"

app = FastAPI(
    title=SERVICE_NAME,
    description="Scam message scoring, intelligence extraction and honeypot replies",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Module-level singletons, swappable through dependency_overrides
session_store: SessionStore = InMemorySessionStore()
provider: CognitiveProvider = build_provider(settings)


def get_store() -> SessionStore:
    return session_store


def get_provider() -> CognitiveProvider:
    return provider


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_session_id() -> str:
    return f"hp_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _decode_base64(value: str, field: str) -> bytes:
    """Decode plain or data-URL base64; 400 on garbage."""
    if "," in value and value.strip().startswith("data:"):
        value = value.split(",", 1)[1]
    try:
        return base64.b64decode(value, validate=False)
    except (binascii.Error, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"'{field}' is not valid base64.",
        )


def _analysis_failed(exc: Exception, short_id: str = "UNKNOWN") -> JSONResponse:
    logger.error(f"[{short_id}] Analysis failed: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Analysis failed",
            "message": str(exc) or "An error occurred during analysis",
        },
    )


def sentiment_for(result: AnalysisResult) -> str:
    """Coarse tone from the number of matched phrases."""
    total = result.matches.total
    if total >= 5:
        return "negative"
    if total >= 2:
        return "mixed"
    return "neutral"


@app.on_event("startup")
async def _on_startup() -> None:
    logger.info(
        f"{SERVICE_NAME} v{__version__} started | provider={provider.name} | "
        f"services={settings.service_status()}"
    )
    if not settings.api_key:
        logger.warning("HONEYPOT_API_KEY is not set; /api routes will return 500")


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error(f"422 VALIDATION ERROR | {request.url.path} | {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "message": "Invalid request payload."},
    )


@app.get("/")
async def health_check() -> dict:
    return {
        "status": "online",
        "service": SERVICE_NAME,
        "version": __version__,
    }


# ==================== HONEYPOT ====================

@app.get("/api/honeypot")
async def honeypot_info(api_key: str = Depends(verify_api_key)) -> dict:
    return {
        "success": True,
        "message": "HoneyGuard API is active and ready",
        "service": SERVICE_NAME,
        "version": __version__,
        "timestamp": _timestamp(),
        "endpoints": {
            "analyze": "POST /api/honeypot",
            "health": "GET /api/honeypot",
            "voice": "POST /api/voice-detection",
            "screenshot": "POST /api/screenshot",
            "sessions": "GET /api/sessions",
        },
    }


async def _read_body(request: Request) -> dict:
    """JSON object body; a JSON string or non-JSON body is treated as text."""
    raw = await request.body()
    if not raw:
        return {}
    text = raw.decode("utf-8", errors="replace")
    try:
        body = json.loads(text)
    except ValueError:
        return {"text": text}
    if isinstance(body, str):
        return {"text": body}
    return body if isinstance(body, dict) else {}


@app.post("/api/honeypot")
async def process_message(
    request: Request,
    api_key: str = Depends(verify_api_key),
    store: SessionStore = Depends(get_store),
):
    """Score one scammer message and answer with a victim-persona reply."""
    session_id = ""
    try:
        payload = HoneypotRequest.model_validate(await _read_body(request))
        session_id = payload.sessionId or _new_session_id()
        text = payload.text_to_analyze()

        if not text:
            return {
                "status": "success",
                "reply": GREETING_REPLY,
                "sessionId": session_id,
                "timestamp": _timestamp(),
            }

        history = payload.conversationHistory
        metadata = payload.metadata
        logger.info(
            f"[{session_id[:8]}] REQUEST  msg_len={len(text)}  history_len={len(history)}"
        )

        result = engine.analyze(
            text,
            locale=metadata.locale if metadata else None,
            channel=metadata.channel if metadata else None,
        )
        reply = generate_reply(text, history)

        sender = payload.message.sender if hasattr(payload.message, "sender") else "scammer"
        record = record_analysis(
            store,
            session_id,
            result,
            message={"sender": sender or "scammer", "text": text},
            source="text",
            history=[m.model_dump() for m in history],
        )
        record.history.append({"sender": "honeypot", "text": reply, "timestamp": _timestamp()})
        store.put(record)

        logger.info(
            f"[{session_id[:8]}] RESULT  score={result.score}  level={result.risk_level}  "
            f"scam={result.is_scam}  msgs={record.total_messages}"
        )

        response = HoneypotResponse(
            status="success",
            reply=reply,
            sessionId=session_id,
            timestamp=_timestamp(),
            analysis=result.assessment.to_dict(),
            extractedIntelligence=result.intelligence.to_dict(),
            patterns=result.patterns,
            recommendations=list(result.recommendations),
            agentNotes=result.notes,
        )
        return response.model_dump()

    except HTTPException:
        raise
    except Exception as exc:
        return _analysis_failed(exc, session_id[:8] if session_id else "UNKNOWN")


# ==================== VOICE ====================

@app.post("/api/voice-detection")
async def voice_detection(
    request: VoiceDetectionRequest,
    api_key: str = Depends(verify_api_key),
    store: SessionStore = Depends(get_store),
    cognitive: CognitiveProvider = Depends(get_provider),
):
    """Analyse supplied text, or transcribe base64 audio first."""
    if not request.text and not request.audioBase64:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide either 'text' (transcribed text) or "
                   "'audioBase64' (base64 encoded audio).",
        )

    short_id = (request.sessionId or "voice")[:8]
    try:
        if request.text:
            transcribed = request.text
        else:
            audio = _decode_base64(request.audioBase64, "audioBase64")
            transcription = cognitive.transcribe(audio, request.language)
            transcribed = cognitive.to_english(transcription.text)
            logger.info(f"[{short_id}] Transcribed {len(audio)} bytes via {cognitive.name}")

        result = engine.analyze(transcribed, locale=request.language, channel="voice")
        if request.sessionId:
            record_analysis(
                store, request.sessionId, result,
                message={"sender": "caller", "text": transcribed}, source="audio",
            )

        return {
            "success": True,
            "analysis": {
                "isScam": result.is_scam,
                "confidence": result.confidence,
                "riskLevel": result.risk_level,
                "riskScore": result.score,
                "sentiment": sentiment_for(result),
                "transcribedText": transcribed,
                "language": request.language,
                "patterns": result.patterns,
                "extractedIntelligence": result.intelligence.to_dict(),
                "recommendations": list(result.recommendations),
            },
            "metadata": {
                "timestamp": _timestamp(),
                "apiVersion": __version__,
            },
        }
    except HTTPException:
        raise
    except Exception as exc:
        return _analysis_failed(exc, short_id)


# ==================== SCREENSHOT ====================

@app.post("/api/screenshot")
async def screenshot_analysis(
    request: ScreenshotRequest,
    api_key: str = Depends(verify_api_key),
    store: SessionStore = Depends(get_store),
    cognitive: CognitiveProvider = Depends(get_provider),
):
    """OCR a base64 screenshot and analyse the extracted text."""
    if not request.imageBase64:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide 'imageBase64' (base64 encoded image).",
        )

    short_id = (request.sessionId or "shot")[:8]
    try:
        image = _decode_base64(request.imageBase64, "imageBase64")
        ocr = cognitive.extract_text(image)
        text = cognitive.to_english(ocr.text)
        logger.info(f"[{short_id}] OCR extracted {len(ocr.lines)} line(s) via {cognitive.name}")

        result = engine.analyze(text, channel="screenshot")
        if request.sessionId:
            record_analysis(
                store, request.sessionId, result,
                message={"sender": "screenshot", "text": text}, source="screenshot",
            )

        return {
            "success": True,
            "extractedText": text,
            "ocrConfidence": ocr.confidence,
            **result.to_dict(),
            "timestamp": _timestamp(),
        }
    except HTTPException:
        raise
    except Exception as exc:
        return _analysis_failed(exc, short_id)


# ==================== SESSIONS ====================

def _require_session(store: SessionStore, session_id: str):
    record = store.get(session_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session '{session_id}' not found.",
        )
    return record


@app.get("/api/sessions")
async def list_sessions(
    api_key: str = Depends(verify_api_key),
    store: SessionStore = Depends(get_store),
) -> dict:
    sessions = [record.summary() for record in store.list()]
    return {"success": True, "count": len(sessions), "sessions": sessions}


# Registered before the {session_id} routes so "retry" is not read as an id
@app.post("/api/sessions/retry")
async def retry_submissions(
    api_key: str = Depends(verify_api_key),
    store: SessionStore = Depends(get_store),
) -> dict:
    queued = len(pending)
    if queued:
        retry_pending_async(store)
    return {"success": True, "queued": queued}


@app.get("/api/sessions/{session_id}")
async def get_session(
    session_id: str,
    api_key: str = Depends(verify_api_key),
    store: SessionStore = Depends(get_store),
) -> dict:
    record = _require_session(store, session_id)
    return {
        "success": True,
        "session": record.summary(),
        "isReadyForSubmission": is_ready_for_submission(record),
        "pendingSubmission": session_id in pending,
        "payload": build_callback_payload(record),
    }


@app.delete("/api/sessions/{session_id}")
async def delete_session(
    session_id: str,
    api_key: str = Depends(verify_api_key),
    store: SessionStore = Depends(get_store),
) -> dict:
    _require_session(store, session_id)
    store.delete(session_id)
    pending.remove(session_id)
    logger.info(f"[{session_id[:8]}] Session deleted")
    return {"success": True, "sessionId": session_id}


@app.post("/api/sessions/{session_id}/submit")
async def submit_session(
    session_id: str,
    api_key: str = Depends(verify_api_key),
    store: SessionStore = Depends(get_store),
) -> dict:
    """Send the final result for one session to the evaluation endpoint."""
    record = _require_session(store, session_id)
    if record.status == STATUS_SUBMITTED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Session '{session_id}' was already submitted.",
        )
    complete_session(store, session_id)
    return submit_final_result(record, store)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
