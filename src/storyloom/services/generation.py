"""Event generation — the LLM side of regeneration and turns.

``EventGenerator`` is the narrow interface the rest of the engine depends
on; ``LLMEventGenerator`` implements it on top of an ``LLMProvider``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

from pydantic import BaseModel, Field

from storyloom.config import settings
from storyloom.llm.base import LLMProvider
from storyloom.models.event import (
    ActionEvent,
    CharacterIntroductionEvent,
    Event,
    LocationChangeEvent,
    NarrationEvent,
)
from storyloom.models.state import State
from storyloom.parsing.output_parser import OutputParser
from storyloom.prompts.loader import PromptLoader

log = logging.getLogger(__name__)


class GenerationCancelled(Exception):
    """Generation was stopped on purpose.  Not a failure."""


class EventGenerator(ABC):
    """Produces events for the timeline."""

    @abstractmethod
    async def generate(self, state: State, position: int) -> Event:
        """Return a replacement for the event at *position*.

        Only the events before *position* may be used as context.
        """

    @abstractmethod
    async def narrate(self, state: State) -> NarrationEvent:
        """Return the narration that follows the current timeline."""


class GeneratedAction(BaseModel):
    action: str = Field(description="One short first-person action for the protagonist")


def current_location_index(state: State, events: Sequence[Event]) -> int:
    """Location of the protagonist after *events* have happened."""
    for event in reversed(events):
        if isinstance(event, (LocationChangeEvent, NarrationEvent)):
            return event.location_index
    return state.protagonist.location_index


def referenced_characters(state: State, text: str) -> List[int]:
    """Indices of characters mentioned by full or first name in *text*."""
    indices = []
    for i, character in enumerate(state.characters):
        first_name = character.name.split(" ")[0]
        if character.name in text or (first_name and first_name in text):
            indices.append(i)
    return indices


def history_text(state: State, events: Sequence[Event]) -> str:
    lines = []
    for event in events:
        if isinstance(event, ActionEvent):
            lines.append(f"[Protagonist]: {event.action}")
        elif isinstance(event, NarrationEvent):
            lines.append(event.text)
        elif isinstance(event, CharacterIntroductionEvent):
            lines.append(f"[{state.character_name(event.character_index)} enters the story]")
        elif isinstance(event, LocationChangeEvent):
            lines.append(f"[The scene moves to {state.location_text(event.location_index)}]")
    return "\n\n".join(lines) or "(the story has not started yet)"


class LLMEventGenerator(EventGenerator):
    """Generates narration and actions with an LLM.

    Narration uses the strong model as free text; suggested actions use the
    fast model with structured output.
    """

    def __init__(
        self,
        strong_llm: LLMProvider,
        fast_llm: LLMProvider | None = None,
        prompts: PromptLoader | None = None,
    ):
        self._strong = strong_llm
        self._fast = fast_llm or strong_llm
        self._prompts = prompts or PromptLoader()

    def _system_prompt(self, state: State) -> str:
        return self._prompts.render(
            "narration",
            "SYSTEM",
            world_name=state.world.name,
            world_description=state.world.description,
            protagonist=state.protagonist.to_prompt_text(),
        )

    async def generate(self, state: State, position: int) -> Event:
        if not 0 <= position < len(state.events):
            raise ValueError(f"No event at position {position}")
        event = state.events[position]
        context = state.events[:position]

        if isinstance(event, NarrationEvent):
            return await self._narrate(state, context)
        if isinstance(event, ActionEvent):
            return await self._suggest_action(state, context)
        raise ValueError(f"Events of type '{event.type}' cannot be regenerated")

    async def narrate(self, state: State) -> NarrationEvent:
        return await self._narrate(state, state.events)

    async def _narrate(self, state: State, context: Sequence[Event]) -> NarrationEvent:
        location_index = current_location_index(state, context)
        characters = "\n".join(
            f"- {c.to_prompt_text()}" for c in state.characters
        ) or "(none)"
        prompt = self._prompts.render(
            "narration",
            "NARRATE",
            location=state.location_text(location_index),
            characters=characters,
            history=history_text(state, context),
        )
        text = await self._strong.complete(
            system_prompt=self._system_prompt(state),
            user_prompt=prompt,
            temperature=settings.narration_temperature,
        )
        text = text.strip()
        if not text:
            raise ValueError("Narrator returned an empty response")
        return NarrationEvent(
            text=text,
            location_index=location_index,
            referenced_character_indices=referenced_characters(state, text),
        )

    async def _suggest_action(self, state: State, context: Sequence[Event]) -> ActionEvent:
        prompt = self._prompts.render(
            "narration",
            "SUGGEST_ACTION",
            location=state.location_text(current_location_index(state, context)),
            history=history_text(state, context),
            format_instructions=OutputParser.format_instructions(GeneratedAction),
        )
        result = await self._fast.complete_structured(
            system_prompt=self._system_prompt(state),
            user_prompt=prompt,
            response_model=GeneratedAction,
        )
        action = result.action.strip()
        if not action:
            raise ValueError("Model suggested an empty action")
        return ActionEvent(action=action)
