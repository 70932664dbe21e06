from __future__ import annotations

import json
import re
from typing import Iterator, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)

_FENCE = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL)


def _balanced_object(text: str) -> str | None:
    """Return the first ``{...}`` span with balanced braces, if any."""
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    for i in range(start, len(text)):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _candidates(text: str) -> Iterator[str]:
    fenced = _FENCE.search(text)
    if fenced:
        yield fenced.group(1).strip()
    obj = _balanced_object(text)
    if obj is not None:
        yield obj
    yield text.strip()


class OutputParser:
    """Parse LLM text output into validated Pydantic models."""

    @staticmethod
    def parse(text: str, model: type[T]) -> T:
        """Extract JSON from *text* and validate against *model*.

        Handles raw JSON objects, JSON inside ```json fences and JSON
        embedded in surrounding prose.  Raises ``ValueError`` when nothing
        validates.
        """
        last_error: Exception | None = None
        for candidate in _candidates(text):
            try:
                return model.model_validate(json.loads(candidate))
            except (json.JSONDecodeError, ValidationError) as exc:
                last_error = exc
        raise ValueError(
            f"Could not parse LLM output into {model.__name__}.\n"
            f"Raw text (first 500 chars): {text[:500]}"
        ) from last_error

    @staticmethod
    def format_instructions(model: type[BaseModel]) -> str:
        """Describe the expected JSON shape for a prompt."""
        schema_str = json.dumps(model.model_json_schema(), indent=2)
        return (
            "The output should be formatted as a JSON instance that conforms "
            "to the JSON schema below.\n\n"
            f"```json\n{schema_str}\n```\n\n"
            "Return ONLY the JSON object, no additional text."
        )
