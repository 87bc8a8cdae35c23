from typing import Literal, Optional

from fastapi import APIRouter, HTTPException

from ..llm import catalog
from ..llm.router import route

router = APIRouter(prefix="/api/models", tags=["models"])

_GROUPS = {
    "fastest": catalog.get_fastest_models,
    "cheapest": catalog.get_cheapest_models,
    "vision": catalog.get_vision_models,
}


@router.get("")
async def list_models(
    provider: Optional[str] = None,
    category: Optional[str] = None,
    group: Optional[Literal["fastest", "cheapest", "vision"]] = None,
):
    models = _GROUPS[group]() if group else list(catalog.AI_MODELS)
    if provider:
        models = [m for m in models if m.provider == provider]
    if category:
        models = [m for m in models if m.category == category]
    return {"models": [m.model_dump() for m in models]}


@router.get("/{model_id:path}")
async def get_model(model_id: str):
    model = catalog.get_model_by_id(model_id)
    if model is None:
        raise HTTPException(status_code=404, detail=f"Unknown model '{model_id}'")
    return {"model": model.model_dump(), "routed_provider": route(model_id)}
