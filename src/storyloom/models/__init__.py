from storyloom.models.event import (
    ActionEvent,
    CharacterIntroductionEvent,
    Event,
    EventAdapter,
    LocationChangeEvent,
    NarrationEvent,
)
from storyloom.models.history import (
    EventHistory,
    EventHistoryEntry,
    HistoryPagination,
    VersionKind,
)
from storyloom.models.state import State, View
from storyloom.models.world import Character, Location, World

__all__ = [
    "ActionEvent",
    "NarrationEvent",
    "CharacterIntroductionEvent",
    "LocationChangeEvent",
    "Event",
    "EventAdapter",
    "EventHistoryEntry",
    "EventHistory",
    "HistoryPagination",
    "VersionKind",
    "State",
    "View",
    "World",
    "Location",
    "Character",
]
