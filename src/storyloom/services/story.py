from __future__ import annotations

import logging
from typing import List, Optional

from storyloom.config import settings
from storyloom.history import operations as ops
from storyloom.history import pagination
from storyloom.models.event import ActionEvent, Event
from storyloom.models.history import EventHistoryEntry
from storyloom.models.state import State
from storyloom.services.generation import EventGenerator, GenerationCancelled
from storyloom.services.regeneration import RegenerationController
from storyloom.state.store import StateStore

log = logging.getLogger(__name__)


class StoryService:
    """Timeline orchestration for the chat view.

    Manages:
    - Turns: the player's action followed by generated narration
    - Manual edits, deletions and version restores on past events
    - The open history viewer and its page
    - Regeneration of past events
    """

    def __init__(
        self,
        store: StateStore,
        generator: EventGenerator,
        controller: RegenerationController | None = None,
    ):
        self._store = store
        self._generator = generator
        self._controller = controller or RegenerationController(store, generator)

    @property
    def state(self) -> State:
        return self._store.state

    # ── Reads ───────────────────────────────────────────────────────────

    def get_event(self, position: int) -> Optional[Event]:
        return ops.get_event(self.state, position)

    def has_history(self, position: int) -> bool:
        return ops.has_history(self.state, position)

    def history_page(
        self, position: int, page: int, page_size: int | None = None
    ) -> List[EventHistoryEntry]:
        return pagination.get_page(
            self.state, position, page, page_size or settings.history_page_size
        )

    def history_page_count(self, position: int, page_size: int | None = None) -> int:
        return pagination.get_page_count(
            self.state, position, page_size or settings.history_page_size
        )

    # ── Turns ───────────────────────────────────────────────────────────

    async def take_turn(self, action: str) -> bool:
        """Record the player's action and narrate what happens next.

        The whole turn is one step: if narration fails or is cancelled the
        action is not recorded either.  Returns False for an empty action
        or a cancelled turn.
        """
        action = action.strip()
        if not action:
            return False

        async def step(draft: State) -> None:
            draft.events.append(ActionEvent(action=action))
            draft.actions = []
            narration = await self._generator.narrate(draft)
            draft.events.append(narration)

        try:
            await self._store.set_async(step)
        except GenerationCancelled:
            log.info("Turn cancelled: %s", action[:60])
            return False
        log.info("Turn complete: %d events", len(self.state.events))
        return True

    # ── Edits ───────────────────────────────────────────────────────────

    async def edit_action(self, position: int, text: str) -> bool:
        """Replace the text of an action event.

        Ignores empty text, unchanged text and non-action events.
        """
        text = text.strip()
        event = self.get_event(position)
        if not text or not isinstance(event, ActionEvent) or event.action == text:
            return False
        await self.replace_event(position, ActionEvent(action=text))
        return True

    async def replace_event(self, position: int, event: Event) -> None:
        """Record *event* as a user edit of the event at *position*."""

        def mutate(state: State) -> None:
            ops.ensure_history(state, position)
            ops.add_version(state, position, event, "edit")

        await self._store.set(mutate)

    async def delete_event(self, position: int) -> None:
        await self._store.set(lambda state: ops.delete_event(state, position))

    async def select_version(self, position: int, version_index: int) -> None:
        await self._store.set(
            lambda state: ops.select_version(state, position, version_index)
        )

    async def delete_version(self, position: int, version_index: int) -> None:
        """Delete one version, stepping the open viewer back if its page ran empty."""

        def mutate(state: State) -> None:
            ops.delete_version(state, position, version_index)
            open_page = state.history_pagination
            if open_page is not None and open_page.event_index == position:
                page = pagination.clamp_page(
                    state, position, open_page.page, open_page.page_size
                )
                if page != open_page.page:
                    ops.set_history_pagination(state, position, page, open_page.page_size)

        await self._store.set(mutate)

    # ── History viewer ──────────────────────────────────────────────────

    async def open_history(self, position: int, page_size: int | None = None) -> None:
        size = page_size or settings.history_page_size

        def mutate(state: State) -> None:
            if ops.get_event(state, position) is None:
                return
            ops.ensure_history(state, position)
            ops.set_history_pagination(state, position, 0, size)

        await self._store.set(mutate)

    async def change_history_page(self, page: int) -> None:
        """Move the open history viewer to *page*; out-of-range pages are ignored."""

        def mutate(state: State) -> None:
            open_page = state.history_pagination
            if open_page is None:
                return
            count = pagination.get_page_count(
                state, open_page.event_index, open_page.page_size
            )
            if 0 <= page < count:
                ops.set_history_pagination(
                    state, open_page.event_index, page, open_page.page_size
                )

        await self._store.set(mutate)

    async def close_history(self) -> None:
        await self._store.set(ops.clear_history_pagination)

    # ── Regeneration ────────────────────────────────────────────────────

    async def regenerate(self, position: int) -> Optional[Event]:
        return await self._controller.regenerate(position)

    def cancel_regeneration(self, position: int) -> bool:
        return self._controller.cancel(position)

    def is_regenerating(self, position: int) -> bool:
        return self._controller.is_regenerating(position)
