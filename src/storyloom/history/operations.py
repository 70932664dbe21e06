"""State transitions for the timeline and its version history.

Every function here takes the mutable ``State`` draft handed out by
``StateStore.set`` and changes ``events`` and ``event_history`` together,
so that for every position ``p`` with a history::

    state.events[p] == state.event_history[str(p)].current.event

Invalid requests (negative or out-of-range positions, unknown versions,
deleting the last remaining version) are ignored rather than raised: the
history UI only ever offers valid indices.
"""

from __future__ import annotations

from typing import Dict, Optional

from storyloom.models.event import Event
from storyloom.models.history import (
    EventHistory,
    EventHistoryEntry,
    HistoryPagination,
    VersionKind,
)
from storyloom.models.state import State


def _key(position: int) -> str:
    return str(position)


def _seed_kind(event: Event) -> VersionKind:
    # Actions are typed by the player, everything else came from the model
    return "edit" if event.type == "action" else "regenerate"


# ── Read accessors ──────────────────────────────────────────────────────


def get_event(state: State, position: int) -> Optional[Event]:
    if 0 <= position < len(state.events):
        return state.events[position]
    return None


def get_history(state: State, position: int) -> Optional[EventHistory]:
    return state.event_history.get(_key(position))


def has_history(state: State, position: int) -> bool:
    return _key(position) in state.event_history


# ── Mutators ────────────────────────────────────────────────────────────


def ensure_history(state: State, position: int) -> None:
    """Record the current event at *position* as its first version.

    Does nothing if the position is empty or already has a history.
    """
    if position < 0 or has_history(state, position):
        return
    event = get_event(state, position)
    if event is None:
        return
    state.event_history[_key(position)] = EventHistory(
        entries=[EventHistoryEntry(event=event, kind=_seed_kind(event))],
        current_version_index=0,
    )


def add_version(state: State, position: int, event: Event, kind: VersionKind) -> None:
    """Append *event* as the newest version and make it current.

    The event being replaced is recorded first if the position had no
    history yet, so no version is ever lost.
    """
    ensure_history(state, position)
    history = get_history(state, position)
    if history is None:
        return
    history.entries.append(EventHistoryEntry(event=event, kind=kind))
    history.current_version_index = len(history.entries) - 1
    state.events[position] = event


def select_version(state: State, position: int, version_index: int) -> None:
    """Make an existing version current without discarding newer ones."""
    history = get_history(state, position)
    if history is None or not 0 <= version_index < len(history.entries):
        return
    history.current_version_index = version_index
    state.events[position] = history.entries[version_index].event


def delete_version(state: State, position: int, version_index: int) -> None:
    """Remove one version; the last remaining version cannot be removed."""
    history = get_history(state, position)
    if history is None or not 0 <= version_index < len(history.entries):
        return
    if len(history.entries) <= 1:
        return

    current = history.current_version_index
    del history.entries[version_index]

    if version_index == current:
        history.current_version_index = max(0, version_index - 1)
        state.events[position] = history.current.event
    elif version_index < current:
        # Same version stays current, it just moved down one slot
        history.current_version_index = current - 1


def delete_event(state: State, position: int) -> None:
    """Remove the event at *position* together with its whole history.

    Histories of later events are re-keyed to follow their events down
    one position.
    """
    if not 0 <= position < len(state.events):
        return

    del state.events[position]

    reindexed: Dict[str, EventHistory] = {}
    for key, history in state.event_history.items():
        if not key.isdigit():
            continue  # not a position; dropped
        index = int(key)
        if index > position:
            reindexed[_key(index - 1)] = history
        elif index < position:
            reindexed[key] = history
    state.event_history = reindexed

    pagination = state.history_pagination
    if pagination is not None:
        if pagination.event_index == position:
            state.history_pagination = None
        elif pagination.event_index > position:
            state.history_pagination = pagination.model_copy(
                update={"event_index": pagination.event_index - 1}
            )


# ── Pagination state ────────────────────────────────────────────────────


def set_history_pagination(
    state: State, event_index: int, page: int, page_size: int = 5
) -> None:
    state.history_pagination = HistoryPagination(
        event_index=event_index, page=page, page_size=page_size
    )


def clear_history_pagination(state: State) -> None:
    state.history_pagination = None
