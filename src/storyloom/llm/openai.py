from __future__ import annotations

from openai import AsyncOpenAI

from storyloom.llm.base import LLMProvider


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions, or any server speaking the same API."""

    name = "openai"
    STRONG_MODEL = "gpt-4.1"
    FAST_MODEL = "gpt-4.1-mini"
    MODELS = ["gpt-4.1", "gpt-4.1-mini", "gpt-5", "gpt-5-mini"]

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        temperature: float = 0.5,
        base_url: str | None = None,
    ):
        super().__init__(model=model, temperature=temperature)
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def _chat(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> str:
        extra = {"response_format": {"type": "json_object"}} if json_mode else {}
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            **extra,
        )
        return response.choices[0].message.content or ""
