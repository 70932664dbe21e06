"""Look up and build the narrator's LLM providers from settings."""

from __future__ import annotations

import logging
from typing import Dict, Tuple, Type

from storyloom.config import settings
from storyloom.llm.anthropic import AnthropicProvider
from storyloom.llm.base import LLMProvider
from storyloom.llm.openai import OpenAIProvider

log = logging.getLogger(__name__)

PROVIDERS: Dict[str, Type[LLMProvider]] = {
    cls.name: cls for cls in (OpenAIProvider, AnthropicProvider)
}


def _api_key(name: str) -> str:
    return getattr(settings, f"{name}_api_key")


def is_configured(name: str) -> bool:
    # A local OpenAI-compatible server does not need a key
    if name == "openai" and settings.openai_base_url:
        return True
    return bool(_api_key(name))


def get_provider(
    name: str | None = None,
    tier: str = "strong",
    model: str | None = None,
    temperature: float | None = None,
) -> LLMProvider:
    """Build a provider.

    *tier* picks the default model and temperature: ``"strong"`` for
    narration, ``"fast"`` for suggested actions.  An explicit *model* or
    *temperature* wins over the tier default.
    """
    name = name or settings.default_provider
    cls = PROVIDERS.get(name)
    if cls is None:
        raise ValueError(f"Unknown provider '{name}'. Choose from: {list(PROVIDERS)}")
    if not is_configured(name):
        raise ValueError(
            f"API key for provider '{name}' is not configured "
            f"(set {name.upper()}_API_KEY in .env)."
        )

    strong = tier == "strong"
    model = model or (cls.STRONG_MODEL if strong else cls.FAST_MODEL)
    if temperature is None:
        temperature = (
            settings.default_strong_temperature if strong
            else settings.default_fast_temperature
        )

    log.info("Creating %s provider: model=%s, temperature=%.2f", name, model, temperature)
    if cls is OpenAIProvider:
        return OpenAIProvider(
            api_key=_api_key(name) or "none",
            model=model,
            temperature=temperature,
            base_url=settings.openai_base_url,
        )
    return cls(api_key=_api_key(name), model=model, temperature=temperature)


def narrator_providers(
    name: str | None = None, model: str | None = None
) -> Tuple[LLMProvider, LLMProvider]:
    """The (narration, action) provider pair for one backend."""
    return get_provider(name, "strong", model), get_provider(name, "fast")


def list_providers() -> dict:
    return {
        name: {
            "configured": is_configured(name),
            "strong_model": cls.STRONG_MODEL,
            "fast_model": cls.FAST_MODEL,
            "models": cls.MODELS,
            "is_default": name == settings.default_provider,
        }
        for name, cls in PROVIDERS.items()
    }
