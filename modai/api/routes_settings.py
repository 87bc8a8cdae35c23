from fastapi import APIRouter, Request

from ..config import AppConfig, update_config
from ..services import apply_config

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("")
async def get_settings(request: Request):
    return request.app.state.config.model_dump()


@router.put("")
async def update_settings(config: AppConfig, request: Request):
    # Rebuild live services first so a config that cannot be applied is never saved
    await apply_config(request.app.state, config)
    updated = update_config(config)
    return updated.model_dump()
