"""Read-only paging over an event's version history."""

from __future__ import annotations

import math
from typing import List

from storyloom.history.operations import get_history
from storyloom.models.history import EventHistoryEntry
from storyloom.models.state import State

DEFAULT_PAGE_SIZE = 5


def get_page(
    state: State, position: int, page: int, page_size: int = DEFAULT_PAGE_SIZE
) -> List[EventHistoryEntry]:
    """Return the versions shown on *page* (0-based), or ``[]``."""
    history = get_history(state, position)
    if history is None or page < 0 or page_size <= 0:
        return []
    start = page * page_size
    return history.entries[start : start + page_size]


def get_page_count(state: State, position: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    history = get_history(state, position)
    if history is None or page_size <= 0:
        return 0
    return math.ceil(len(history.entries) / page_size)


def clamp_page(
    state: State, position: int, page: int, page_size: int = DEFAULT_PAGE_SIZE
) -> int:
    """Page to show after a version was deleted from *page*.

    Steps back one page when the current page ran empty.
    """
    if page > 0 and page >= get_page_count(state, position, page_size):
        return page - 1
    return page
