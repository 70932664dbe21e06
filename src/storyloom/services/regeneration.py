from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Set

from storyloom.history.operations import add_version, ensure_history, get_event
from storyloom.models.event import Event
from storyloom.models.state import State
from storyloom.services.generation import EventGenerator, GenerationCancelled
from storyloom.state.store import StateStore

log = logging.getLogger(__name__)


def _being_cancelled() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class RegenerationController:
    """Replaces timeline events with freshly generated versions.

    A regeneration runs in two store steps: the current event is recorded
    as a version first, then the generator is awaited and its result added
    as a new ``"regenerate"`` version.  The second step holds the store for
    the whole generation, so manual edits queue behind it.

    Only one regeneration per position can be outstanding.  If the target
    event is deleted or moved while generation runs, the result still lands
    at the original position.
    """

    def __init__(self, store: StateStore, generator: EventGenerator):
        self._store = store
        self._generator = generator
        self._pending: Set[int] = set()
        self._cancel_requested: Set[int] = set()
        self._tasks: Dict[int, asyncio.Task] = {}

    def is_regenerating(self, position: int) -> bool:
        return position in self._pending

    def cancel(self, position: int) -> bool:
        """Stop the regeneration at *position*.  Returns False if none runs."""
        if position not in self._pending:
            return False
        self._cancel_requested.add(position)
        task = self._tasks.get(position)
        if task is not None:
            task.cancel()
        return True

    async def regenerate(self, position: int) -> Optional[Event]:
        """Generate a new version of the event at *position*.

        Returns the new event, or ``None`` when nothing was done: the
        position is empty, a regeneration for it is already running, or it
        was cancelled.  Generation failures are re-raised after the state
        step has been rolled back.
        """
        if get_event(self._store.state, position) is None:
            return None
        if position in self._pending:
            log.debug("Regeneration of event %d already in progress", position)
            return None

        self._pending.add(position)
        result: List[Event] = []
        try:
            await self._store.set(lambda state: ensure_history(state, position))

            async def step(draft: State) -> None:
                event = await self._generate(draft, position)
                add_version(draft, position, event, "regenerate")
                result.append(event)

            await self._store.set_async(step)
        except GenerationCancelled:
            log.info("Regeneration of event %d cancelled", position)
            return None
        except Exception as exc:
            log.error("Regeneration of event %d failed: %s", position, exc)
            raise
        finally:
            self._pending.discard(position)
            self._cancel_requested.discard(position)

        log.info("Regenerated event %d", position)
        return result[0]

    async def _generate(self, draft: State, position: int) -> Event:
        # Cancelled while still queued behind another step
        if position in self._cancel_requested:
            raise GenerationCancelled(f"Regeneration of event {position} cancelled")

        task = asyncio.ensure_future(self._generator.generate(draft, position))
        self._tasks[position] = task
        try:
            return await task
        except asyncio.CancelledError:
            if _being_cancelled():
                raise
            raise GenerationCancelled(
                f"Regeneration of event {position} cancelled"
            ) from None
        finally:
            self._tasks.pop(position, None)
