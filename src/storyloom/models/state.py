"""Application state — the timeline, its version history and the world."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from storyloom.models.event import Event
from storyloom.models.history import EventHistory, HistoryPagination
from storyloom.models.world import Character, Location, World

View = Literal["welcome", "connection", "genre", "character", "scenario", "chat"]


class State(BaseModel):
    """Everything the engine persists between sessions.

    ``events`` is the canonical timeline.  ``event_history`` is keyed by the
    stringified position of an event in ``events`` and only holds positions
    that were edited or regenerated at least once.
    """

    view: View = "welcome"
    world: World = Field(default_factory=World)
    locations: List[Location] = Field(default_factory=list)
    characters: List[Character] = Field(default_factory=list)
    protagonist: Character = Field(default_factory=Character)

    events: List[Event] = Field(default_factory=list)
    actions: List[str] = Field(
        default_factory=list,
        description="Suggested next actions for the protagonist",
    )
    event_history: Dict[str, EventHistory] = Field(default_factory=dict)

    # Transient; never persisted
    history_pagination: Optional[HistoryPagination] = None

    @model_validator(mode="after")
    def _histories_match_events(self) -> "State":
        for key, history in self.event_history.items():
            if not key.isdigit() or key != str(int(key)) or int(key) >= len(self.events):
                raise ValueError(f"event_history key '{key}' has no matching event")
            if self.events[int(key)] != history.current.event:
                raise ValueError(
                    f"event {key} differs from the current version in its history"
                )
        return self

    def location_text(self, index: int) -> str:
        if 0 <= index < len(self.locations):
            loc = self.locations[index]
            return f"{loc.name} ({loc.type}): {loc.description}"
        return "(unknown location)"

    def character_name(self, index: int) -> str:
        if 0 <= index < len(self.characters):
            return self.characters[index].name
        return "(unknown character)"
