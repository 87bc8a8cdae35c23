"""FastAPI dependencies that hand out the service objects built in create_app()."""

from fastapi import Request

from ..auth import AuthService
from ..config import AppConfig
from ..conversation.chat import ChatService
from ..conversation.storage import ConversationStore
from ..llm.router import ProviderRouter
from ..media.audio import AudioService
from ..media.images import ImageService


def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_store(request: Request) -> ConversationStore:
    return request.app.state.store


def get_router(request: Request) -> ProviderRouter:
    return request.app.state.router


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat


def get_image_service(request: Request) -> ImageService:
    return request.app.state.images


def get_audio_service(request: Request) -> AudioService:
    return request.app.state.audio


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth
