import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from ..llm.errors import ProviderConfigError, ProviderError, UpstreamHTTPError
from ..media.audio import AUDIO_MODELS, SUPPORTED_LANGUAGES, AudioService
from .deps import get_audio_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/audio", tags=["audio"])


@router.post("")
async def process_audio(
    file: Optional[UploadFile] = File(None),
    action: str = Form("transcribe"),
    model: Optional[str] = Form(None),
    language: Optional[str] = Form(None),
    temperature: Optional[str] = Form(None),
    audio: AudioService = Depends(get_audio_service),
):
    if file is None:
        return JSONResponse({"error": "No audio file provided"}, status_code=400)

    data = await file.read()
    try:
        result = await audio.process(
            data,
            filename=file.filename or "audio.webm",
            content_type=file.content_type or "application/octet-stream",
            action=action,
            model=model,
            language=language,
            temperature=temperature,
        )
    except ProviderConfigError as e:
        return JSONResponse({"error": e.message}, status_code=500)
    except UpstreamHTTPError as e:
        return JSONResponse(
            {"error": e.message, "details": e.details}, status_code=e.status_code
        )
    except ProviderError as e:
        logger.error("Groq audio API error: %s", e.message)
        return JSONResponse(
            {"error": "Audio processing failed", "details": e.message}, status_code=500
        )
    return result.model_dump()


@router.get("/models")
async def list_audio_models():
    return {"models": AUDIO_MODELS}


@router.get("/languages")
async def list_languages():
    return {"languages": SUPPORTED_LANGUAGES}
