from __future__ import annotations

import asyncio
from typing import List, Optional

from storyloom.models import (
    ActionEvent,
    Character,
    Event,
    Location,
    NarrationEvent,
    State,
    World,
)
from storyloom.services.generation import EventGenerator


class ScriptedGenerator(EventGenerator):
    """Returns queued events; can block on a gate or raise an error."""

    def __init__(
        self,
        results: Optional[List[Event]] = None,
        error: Optional[BaseException] = None,
    ):
        self.results = list(results or [])
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.started = asyncio.Event()
        self.calls: List[int] = []
        self.seen_event_counts: List[int] = []

    async def _next(self, state: State, position: int) -> Event:
        self.calls.append(position)
        self.seen_event_counts.append(len(state.events))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.results.pop(0)

    async def generate(self, state: State, position: int) -> Event:
        return await self._next(state, position)

    async def narrate(self, state: State) -> NarrationEvent:
        event = await self._next(state, len(state.events))
        assert isinstance(event, NarrationEvent)
        return event


def make_state(*events: Event) -> State:
    return State(
        view="chat",
        world=World(name="Eldmoor", description="A marsh kingdom."),
        locations=[Location(name="The Drowned Lantern", type="tavern")],
        characters=[Character(name="Mira Vell", gender="female")],
        protagonist=Character(name="Arn"),
        events=list(events),
    )


def narration(text: str) -> NarrationEvent:
    return NarrationEvent(text=text)


def action(text: str) -> ActionEvent:
    return ActionEvent(action=text)


def assert_log_matches_history(state: State) -> None:
    for key, history in state.event_history.items():
        assert len(history.entries) >= 1
        assert 0 <= history.current_version_index < len(history.entries)
        assert state.events[int(key)] == history.current.event

