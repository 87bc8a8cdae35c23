import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from modai.api.routes_audio import router as audio_router
from modai.api.routes_auth import router as auth_router
from modai.api.routes_chat import router as chat_router
from modai.api.routes_conversation import router as conversation_router
from modai.api.routes_image import router as image_router
from modai.api.routes_logs import router as logs_router, log_handler
from modai.api.routes_models import router as models_router
from modai.api.routes_settings import router as settings_router
from modai.config import AppConfig, get_config, get_storage_path
from modai.kvstore import JsonFileKeyValueStore, KeyValueStore
from modai.services import close_services, init_services

VERSION = "1.0.0"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
if log_handler not in logging.getLogger().handlers:
    logging.getLogger().addHandler(log_handler)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("MOD AI backend started (%d conversations loaded)", len(app.state.store))
    yield
    await close_services(app.state)
    logger.info("MOD AI backend stopped")


def create_app(
    config: Optional[AppConfig] = None,
    kv: Optional[KeyValueStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    config = config or get_config()
    kv = kv or JsonFileKeyValueStore(get_storage_path())

    app = FastAPI(title="MOD AI Backend", version=VERSION, lifespan=lifespan)
    init_services(app.state, config, kv, transport)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",     # Next.js dev server
            "http://127.0.0.1:3000",
            config.llm.site_url,
        ],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(chat_router)
    app.include_router(image_router)
    app.include_router(audio_router)
    app.include_router(conversation_router)
    app.include_router(models_router)
    app.include_router(auth_router)
    app.include_router(settings_router)
    app.include_router(logs_router)

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok", "version": VERSION}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8765)
