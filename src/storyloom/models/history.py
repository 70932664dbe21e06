from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storyloom.models.event import Event

VersionKind = Literal["edit", "regenerate"]


class EventHistoryEntry(BaseModel):
    """One recorded version of an event, with how it was produced."""

    model_config = ConfigDict(frozen=True)

    event: Event
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    kind: VersionKind


class EventHistory(BaseModel):
    """All recorded versions of the event at one timeline position.

    ``entries`` is oldest first and never empty; the entry at
    ``current_version_index`` is the one mirrored into the timeline.
    """

    entries: List[EventHistoryEntry] = Field(min_length=1)
    current_version_index: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _current_in_range(self) -> "EventHistory":
        if self.current_version_index >= len(self.entries):
            raise ValueError(
                f"current_version_index {self.current_version_index} is out of range "
                f"for {len(self.entries)} versions"
            )
        return self

    @property
    def current(self) -> EventHistoryEntry:
        return self.entries[self.current_version_index]


class HistoryPagination(BaseModel):
    """Which history viewer is open and which page it shows."""

    event_index: int
    page: int = 0
    page_size: int = 5
