from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from ..config import AppConfig
from ..conversation.chat import ChatService
from ..conversation.models import MessageMetadata, Role
from ..conversation.storage import ConversationStore
from ..conversation.window import select_context
from .deps import get_app_config, get_chat_service, get_store

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


class CreateConversationRequest(BaseModel):
    model: str = ""
    welcome: bool = True  # Seed with the assistant's greeting


class SetCurrentRequest(BaseModel):
    conversation_id: str


class SetModelRequest(BaseModel):
    model: str


class AppendMessageRequest(BaseModel):
    content: str
    role: Role
    model: Optional[str] = None
    metadata: Optional[MessageMetadata] = None


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Conversation not found")


@router.get("")
async def list_conversations(store: ConversationStore = Depends(get_store)):
    summaries = store.list_summaries()
    return {
        "conversations": [s.model_dump(mode="json") for s in summaries],
        "current_id": store.get_current_id(),
    }


@router.post("")
async def create_conversation(
    req: CreateConversationRequest,
    chat: ChatService = Depends(get_chat_service),
    config: AppConfig = Depends(get_app_config),
):
    model = req.model or config.llm.default_model
    if req.welcome:
        conv_id = chat.start_conversation(model)
    else:
        conv_id = chat.store.create_conversation(model)
    conv = chat.store.get_conversation(conv_id)
    return {"conversation": conv.model_dump(mode="json")}


@router.delete("")
async def clear_conversations(store: ConversationStore = Depends(get_store)):
    store.clear()
    return {"status": "cleared"}


@router.get("/current")
async def get_current_conversation(
    model: Optional[str] = None,
    chat: ChatService = Depends(get_chat_service),
    config: AppConfig = Depends(get_app_config),
):
    conv = chat.ensure_conversation(model or config.llm.default_model)
    return {"conversation": conv.model_dump(mode="json")}


@router.put("/current")
async def set_current_conversation(
    req: SetCurrentRequest, store: ConversationStore = Depends(get_store)
):
    if not store.set_current(req.conversation_id):
        raise _not_found()
    return {"current_id": req.conversation_id}


@router.get("/export")
async def export_conversations(store: ConversationStore = Depends(get_store)):
    return Response(
        content=store.export_conversations(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="conversations.json"'},
    )


@router.post("/import")
async def import_conversations(
    request: Request, store: ConversationStore = Depends(get_store)
):
    payload = (await request.body()).decode("utf-8", errors="replace")
    if not store.import_conversations(payload):
        return JSONResponse(
            {"success": False, "error": "Invalid conversation export"}, status_code=400
        )
    return {"success": True, "count": len(store)}


@router.get("/{conv_id}")
async def get_conversation(conv_id: str, store: ConversationStore = Depends(get_store)):
    conv = store.get_conversation(conv_id)
    if not conv:
        raise _not_found()
    return {"conversation": conv.model_dump(mode="json")}


@router.delete("/{conv_id}")
async def delete_conversation(conv_id: str, store: ConversationStore = Depends(get_store)):
    if store.delete_conversation(conv_id):
        return {"status": "deleted"}
    raise _not_found()


@router.put("/{conv_id}/model")
async def set_conversation_model(
    conv_id: str, req: SetModelRequest, store: ConversationStore = Depends(get_store)
):
    if not store.set_model(conv_id, req.model):
        raise _not_found()
    return {"conversation": store.get_conversation(conv_id).model_dump(mode="json")}


@router.post("/{conv_id}/messages")
async def append_message(
    conv_id: str,
    req: AppendMessageRequest,
    store: ConversationStore = Depends(get_store),
):
    message = store.add_message(
        conv_id, req.content, req.role, model=req.model, metadata=req.metadata
    )
    if message is None:
        raise _not_found()
    return {"message": message.model_dump(mode="json")}


@router.get("/{conv_id}/context")
async def get_context(
    conv_id: str,
    max_tokens: Optional[int] = None,
    store: ConversationStore = Depends(get_store),
    config: AppConfig = Depends(get_app_config),
):
    conv = store.get_conversation(conv_id)
    if not conv:
        raise _not_found()
    budget = config.memory.context_token_budget if max_tokens is None else max_tokens
    messages = select_context(conv, budget)
    return {
        "messages": [m.model_dump(mode="json") for m in messages],
        "max_tokens": budget,
    }
