from storyloom.history.operations import (
    add_version,
    clear_history_pagination,
    delete_event,
    delete_version,
    ensure_history,
    get_event,
    get_history,
    has_history,
    select_version,
    set_history_pagination,
)
from storyloom.history.pagination import clamp_page, get_page, get_page_count

__all__ = [
    "add_version",
    "clear_history_pagination",
    "delete_event",
    "delete_version",
    "ensure_history",
    "get_event",
    "get_history",
    "has_history",
    "select_version",
    "set_history_pagination",
    "clamp_page",
    "get_page",
    "get_page_count",
]
