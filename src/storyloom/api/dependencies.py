"""Shared FastAPI dependencies — the state store, story service and provider access."""

from __future__ import annotations

import logging
from typing import Optional

from storyloom.config import settings
from storyloom.llm.registry import narrator_providers
from storyloom.models.event import Event, NarrationEvent
from storyloom.models.state import State
from storyloom.prompts.loader import PromptLoader
from storyloom.services.generation import EventGenerator, LLMEventGenerator
from storyloom.services.story import StoryService
from storyloom.state.store import StateStore

log = logging.getLogger(__name__)

# --- Singletons ---

_prompts = PromptLoader()
_store = StateStore()

# Provider & model can be switched at runtime via the /providers endpoint
_active_provider: str = settings.default_provider
_active_model: Optional[str] = None  # None = use tier default


def set_active_provider(name: str) -> None:
    global _active_provider
    _active_provider = name
    log.info("Active provider set to: %s", name)


def get_active_provider() -> str:
    return _active_provider


def set_active_model(model: Optional[str]) -> None:
    global _active_model
    _active_model = model
    log.info("Active model set to: %s", model or "(tier default)")


def get_active_model() -> Optional[str]:
    return _active_model


def _llm_generator() -> LLMEventGenerator:
    strong, fast = narrator_providers(_active_provider, _active_model)
    return LLMEventGenerator(strong, fast, prompts=_prompts)


class ActiveProviderGenerator(EventGenerator):
    """Generates with whichever provider is active at call time."""

    async def generate(self, state: State, position: int) -> Event:
        return await _llm_generator().generate(state, position)

    async def narrate(self, state: State) -> NarrationEvent:
        return await _llm_generator().narrate(state)


def get_store() -> StateStore:
    return _store


# --- Story service (singleton — tracks in-flight regenerations) ---

_story_service: Optional[StoryService] = None


def get_story_service() -> StoryService:
    global _story_service
    if _story_service is None:
        _story_service = StoryService(_store, ActiveProviderGenerator())
    return _story_service
