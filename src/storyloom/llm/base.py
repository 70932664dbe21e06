"""Chat backends for the narrator.

Subclasses only implement ``_chat``, a single system + user exchange.
Logging, temperature resolution and structured output live here.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import ClassVar, List, TypeVar

from pydantic import BaseModel

from storyloom.config import settings
from storyloom.parsing.output_parser import OutputParser

T = TypeVar("T", bound=BaseModel)
log = logging.getLogger(__name__)


class LLMProvider(ABC):
    name: ClassVar[str] = "base"
    STRONG_MODEL: ClassVar[str] = ""
    FAST_MODEL: ClassVar[str] = ""
    MODELS: ClassVar[List[str]] = []
    MAX_TEMPERATURE: ClassVar[float] = 2.0

    def __init__(self, model: str | None = None, temperature: float = 0.5):
        self.model = model or self.STRONG_MODEL
        self.temperature = temperature

    def resolve_temperature(self, temperature: float | None) -> float:
        temp = self.temperature if temperature is None else temperature
        return min(temp, self.MAX_TEMPERATURE)

    @abstractmethod
    async def _chat(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> str:
        """Send one exchange to the backend and return the reply text."""

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float | None = None,
        max_tokens: int = 1024,
        json_mode: bool = False,
    ) -> str:
        """Return a plain-text completion."""
        log.info("%s complete: model=%s, json_mode=%s, prompt_len=%d",
                 self.name, self.model, json_mode, len(user_prompt))
        self._log_prompt(system_prompt, user_prompt)
        started = time.monotonic()
        try:
            text = await self._chat(
                system_prompt,
                user_prompt,
                temperature=self.resolve_temperature(temperature),
                max_tokens=max_tokens,
                json_mode=json_mode,
            )
        except Exception as exc:
            log.error("%s API error (model=%s): %s", self.name, self.model, exc)
            raise
        log.info("%s response: %d chars in %.1fs",
                 self.name, len(text), time.monotonic() - started)
        self._log_response(text)
        return text

    async def complete_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        response_model: type[T],
        *,
        temperature: float | None = None,
        max_tokens: int = 1024,
    ) -> T:
        """Return *response_model* parsed from a JSON-mode completion."""
        schema = json.dumps(response_model.model_json_schema(), indent=2)
        raw = await self.complete(
            f"{system_prompt}\n\nRespond with JSON matching this schema:\n{schema}",
            user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=True,
        )
        try:
            return OutputParser.parse(raw, response_model)
        except ValueError as exc:
            log.error("%s structured parse failed for %s: %s",
                      self.name, response_model.__name__, exc)
            raise

    def _log_prompt(self, system_prompt: str, user_prompt: str) -> None:
        if settings.log_prompts:
            log.info("Prompt for %s:\n[system]\n%s\n[user]\n%s",
                     self.model, system_prompt, user_prompt)

    def _log_response(self, text: str) -> None:
        if settings.log_responses:
            log.info("Response from %s:\n%s", self.model, text)
