"""Timeline API — turns, edits, deletions, regeneration and version history."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from storyloom.api.dependencies import get_story_service
from storyloom.config import settings
from storyloom.models.event import ActionEvent, Event
from storyloom.services.story import StoryService

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["events"])


# ── Request models ──────────────────────────────────────────────────────


class TurnRequest(BaseModel):
    action: str


class EditEventRequest(BaseModel):
    event: Event


class PaginationRequest(BaseModel):
    event_index: int = Field(ge=0)
    page: int = Field(default=0, ge=0)
    page_size: Optional[int] = Field(default=None, ge=1)


# ── Helpers ─────────────────────────────────────────────────────────────


def _require_event(svc: StoryService, position: int) -> Event:
    event = svc.get_event(position)
    if event is None:
        raise HTTPException(404, f"No event at position {position}")
    return event


def _history_view(
    svc: StoryService, position: int, page: int = 0, page_size: Optional[int] = None
) -> dict:
    history = svc.state.event_history.get(str(position))
    entries = svc.history_page(position, page, page_size)
    size = page_size or settings.history_page_size
    return {
        "position": position,
        "page": page,
        "page_count": svc.history_page_count(position, page_size),
        "version_count": len(history.entries) if history else 0,
        "current_version_index": history.current_version_index if history else None,
        "entries": [
            {"version_index": page * size + i, **entry.model_dump(mode="json")}
            for i, entry in enumerate(entries)
        ],
    }


# ── Timeline ────────────────────────────────────────────────────────────


@router.get("/state")
async def get_state(svc: StoryService = Depends(get_story_service)):
    """The full current state."""
    return svc.state.model_dump(mode="json")


@router.get("/events")
async def list_events(svc: StoryService = Depends(get_story_service)):
    """All events in timeline order, with whether each has a history."""
    return [
        {
            "position": i,
            "has_history": svc.has_history(i),
            "regenerating": svc.is_regenerating(i),
            "event": event.model_dump(mode="json"),
        }
        for i, event in enumerate(svc.state.events)
    ]


@router.post("/events/turn")
async def take_turn(body: TurnRequest, svc: StoryService = Depends(get_story_service)):
    """Submit the player's action and narrate what happens next."""
    if not body.action.strip():
        raise HTTPException(400, "Action must not be empty")
    try:
        done = await svc.take_turn(body.action)
    except Exception as exc:
        log.error("Turn failed: %s", exc)
        raise HTTPException(502, f"Narration failed: {exc}")
    if not done:
        raise HTTPException(409, "Turn was cancelled")
    return {"events": [e.model_dump(mode="json") for e in svc.state.events[-2:]]}


@router.get("/events/{position}")
async def get_event(position: int, svc: StoryService = Depends(get_story_service)):
    event = _require_event(svc, position)
    return {
        "position": position,
        "has_history": svc.has_history(position),
        "event": event.model_dump(mode="json"),
    }


@router.put("/events/{position}")
async def edit_event(
    position: int,
    body: EditEventRequest,
    svc: StoryService = Depends(get_story_service),
):
    """Record a manual edit as a new version of the event.

    The edit must keep the event's kind.  Unchanged action text is a no-op.
    """
    current = _require_event(svc, position)
    if body.event.type != current.type:
        raise HTTPException(
            400, f"Cannot replace a {current.type} event with a {body.event.type} event"
        )
    if isinstance(body.event, ActionEvent):
        if not body.event.action.strip():
            raise HTTPException(400, "Action must not be empty")
        await svc.edit_action(position, body.event.action)
    else:
        await svc.replace_event(position, body.event)
    return _history_view(svc, position)


@router.delete("/events/{position}")
async def delete_event(position: int, svc: StoryService = Depends(get_story_service)):
    """Delete the event and its history; later events move up one position."""
    _require_event(svc, position)
    await svc.delete_event(position)
    return {"event_count": len(svc.state.events)}


# ── Regeneration ────────────────────────────────────────────────────────


@router.post("/events/{position}/regenerate")
async def regenerate_event(position: int, svc: StoryService = Depends(get_story_service)):
    """Generate a new version of the event."""
    _require_event(svc, position)
    if svc.is_regenerating(position):
        raise HTTPException(409, "Regeneration already in progress")
    try:
        event = await svc.regenerate(position)
    except Exception as exc:
        log.error("Regeneration of event %d failed: %s", position, exc)
        raise HTTPException(502, f"Regeneration failed: {exc}")
    if event is None:
        raise HTTPException(409, "Regeneration was cancelled")
    return _history_view(svc, position)


@router.post("/events/{position}/cancel")
async def cancel_regeneration(position: int, svc: StoryService = Depends(get_story_service)):
    """Cancel a running regeneration of the event."""
    return {"cancelled": svc.cancel_regeneration(position)}


# ── Version history ─────────────────────────────────────────────────────


@router.get("/events/{position}/history")
async def get_history(
    position: int,
    page: int = Query(default=0, ge=0),
    page_size: Optional[int] = Query(default=None, ge=1),
    svc: StoryService = Depends(get_story_service),
):
    """One page of the event's versions, oldest first."""
    _require_event(svc, position)
    return _history_view(svc, position, page, page_size)


@router.post("/events/{position}/history/{version}/select")
async def select_version(
    position: int,
    version: int,
    svc: StoryService = Depends(get_story_service),
):
    """Restore an older (or newer) version without deleting any."""
    _require_event(svc, position)
    await svc.select_version(position, version)
    return _history_view(svc, position)


@router.delete("/events/{position}/history/{version}")
async def delete_version(
    position: int,
    version: int,
    svc: StoryService = Depends(get_story_service),
):
    """Delete one version; the last remaining version is kept."""
    _require_event(svc, position)
    await svc.delete_version(position, version)
    return _history_view(svc, position)


@router.put("/history/pagination")
async def open_history(body: PaginationRequest, svc: StoryService = Depends(get_story_service)):
    """Open the history viewer for an event at a given page."""
    _require_event(svc, body.event_index)
    await svc.open_history(body.event_index, body.page_size)
    if body.page:
        await svc.change_history_page(body.page)
    pagination = svc.state.history_pagination
    return pagination.model_dump() if pagination else None


@router.delete("/history/pagination")
async def close_history(svc: StoryService = Depends(get_story_service)):
    await svc.close_history()
    return {"closed": True}
