import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import AppConfig
from ..conversation.chat import ChatService
from ..llm.errors import ProviderError
from ..media.images import ImageOptions, ImageService
from .deps import get_app_config, get_chat_service, get_image_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/image-generation", tags=["images"])


class ImageRequest(BaseModel):
    prompt: str = ""
    model: Optional[str] = None
    options: ImageOptions = ImageOptions()
    conversation_id: Optional[str] = None


@router.post("")
async def generate_image(
    req: ImageRequest,
    images: ImageService = Depends(get_image_service),
    chat: ChatService = Depends(get_chat_service),
    config: AppConfig = Depends(get_app_config),
):
    if not req.prompt:
        return JSONResponse({"error": "Prompt is required"}, status_code=400)
    if req.conversation_id and req.conversation_id not in chat.store:
        raise HTTPException(status_code=404, detail="Conversation not found")

    model = req.model or config.image.default_model
    try:
        result = await images.generate(req.prompt, model, req.options)
    except ProviderError as e:
        # Only reachable when the fallback policy is "raise"
        logger.error("Image generation API error: %s", e.message)
        status = getattr(e, "status_code", 500)
        return JSONResponse(
            {"error": "Image generation failed", "details": e.message},
            status_code=status,
        )

    if req.conversation_id and result.images:
        chat.record_image(req.conversation_id, req.prompt, model)
    return result.model_dump(exclude_none=True)
