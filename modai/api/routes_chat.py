import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import AppConfig
from ..conversation.chat import ChatService
from ..llm.errors import ProviderError
from ..llm.router import ChatOptions, ChatResult, ProviderRouter
from .deps import get_app_config, get_chat_service, get_router

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = ""
    messages: list[ChatMessage] = []  # Prior turns, already windowed by the caller
    model: Optional[str] = None
    options: ChatOptions = ChatOptions()
    conversation_id: Optional[str] = None  # Use stored history instead of `messages`


def _failure(details: str) -> JSONResponse:
    return JSONResponse(
        {"error": "Failed to generate response", "details": details},
        status_code=500,
    )


@router.post("")
async def send_message(
    req: ChatRequest,
    providers: ProviderRouter = Depends(get_router),
    chat: ChatService = Depends(get_chat_service),
    config: AppConfig = Depends(get_app_config),
):
    if not req.message:
        return JSONResponse({"error": "Message is required"}, status_code=400)

    model = req.model or config.llm.default_model
    if req.conversation_id and req.conversation_id not in chat.store:
        raise HTTPException(status_code=404, detail="Conversation not found")

    result: Optional[ChatResult]
    try:
        if req.conversation_id:
            result = await chat.send(req.conversation_id, req.message, model, req.options)
        else:
            history = [m.model_dump() for m in req.messages]
            result = await providers.chat(req.message, history, model, req.options)
    except ProviderError as e:
        logger.error("Chat API error (%s): %s", type(e).__name__, e.message)
        return _failure(e.message)
    except Exception as e:
        logger.error("Chat API error: %s", e, exc_info=True)
        return _failure(str(e))

    if result is None:
        raise HTTPException(status_code=404, detail="Conversation not found")

    body = result.to_response()
    if req.conversation_id:
        body["conversation_id"] = req.conversation_id
    return body
