from __future__ import annotations

import logging
from typing import TypeVar

from anthropic import AsyncAnthropic
from pydantic import BaseModel

from storyloom.llm.base import LLMProvider
from storyloom.parsing.output_parser import OutputParser

T = TypeVar("T", bound=BaseModel)
log = logging.getLogger(__name__)

_TOOL_NAME = "record_result"


class AnthropicProvider(LLMProvider):
    """Anthropic messages API.  Structured output goes through a forced tool call."""

    name = "anthropic"
    STRONG_MODEL = "claude-sonnet-4-5-20250929"
    FAST_MODEL = "claude-haiku-4-5-20251001"
    MODELS = [STRONG_MODEL, FAST_MODEL]
    MAX_TEMPERATURE = 1.0

    def __init__(self, api_key: str, model: str | None = None, temperature: float = 0.5):
        super().__init__(model=model, temperature=temperature)
        self._client = AsyncAnthropic(api_key=api_key)

    async def _chat(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> str:
        # No JSON mode here; the prompt already asks for JSON
        response = await self._client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return "".join(b.text for b in response.content if b.type == "text")

    async def complete_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        response_model: type[T],
        *,
        temperature: float | None = None,
        max_tokens: int = 1024,
    ) -> T:
        log.info("anthropic structured: model=%s, target=%s",
                 self.model, response_model.__name__)
        self._log_prompt(system_prompt, user_prompt)
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=self.resolve_temperature(temperature),
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                tools=[{
                    "name": _TOOL_NAME,
                    "description": f"Record the {response_model.__name__}.",
                    "input_schema": response_model.model_json_schema(),
                }],
                tool_choice={"type": "tool", "name": _TOOL_NAME},
            )
        except Exception as exc:
            log.error("anthropic API error (model=%s): %s", self.model, exc)
            raise

        for block in response.content:
            if block.type == "tool_use" and block.name == _TOOL_NAME:
                self._log_response(str(block.input))
                return response_model.model_validate(block.input)

        log.warning("anthropic: no tool call in reply, parsing text instead")
        raw = "".join(b.text for b in response.content if b.type == "text")
        self._log_response(raw)
        return OutputParser.parse(raw, response_model)
