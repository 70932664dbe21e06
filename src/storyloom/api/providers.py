"""Which LLM backend narrates the story."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from storyloom.api import dependencies as deps
from storyloom.llm.registry import PROVIDERS, is_configured, list_providers

router = APIRouter(prefix="/api/providers", tags=["providers"])


class SetProviderRequest(BaseModel):
    name: str
    model: Optional[str] = None


def _active() -> dict:
    return {"active": deps.get_active_provider(), "active_model": deps.get_active_model()}


@router.get("")
def get_providers():
    return {**_active(), "providers": list_providers()}


@router.put("/active")
def switch_provider(body: SetProviderRequest):
    """Switch the narrator's backend and model.

    Regenerations already running finish on the backend they started with.
    """
    if body.name not in PROVIDERS:
        raise HTTPException(400, f"Unknown provider '{body.name}'. Choose from: {list(PROVIDERS)}")
    if not is_configured(body.name):
        raise HTTPException(400, f"Provider '{body.name}' has no API key configured.")
    deps.set_active_provider(body.name)
    deps.set_active_model(body.model)
    return _active()
