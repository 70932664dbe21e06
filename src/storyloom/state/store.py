"""Single-writer state container.

All changes to ``State`` go through :meth:`StateStore.set` or
:meth:`StateStore.set_async`.  Each call is one *step*: the store hands the
mutator a deep copy of the current state and only swaps that copy in once
the mutator has finished.  If the mutator raises, the copy is thrown away
and the error re-raised, so a step is never partially applied.

Steps are serialized by one lock.  While an async step is suspended (for
example waiting on the LLM), every other step waits behind it instead of
changing the state underneath it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

from storyloom.models.state import State

log = logging.getLogger(__name__)

Mutator = Callable[[State], None]
AsyncUpdater = Callable[[State], Awaitable[None]]
Listener = Callable[[State], Union[None, Awaitable[None]]]


class StateStore:
    """Owns the application state and applies updates atomically."""

    def __init__(self, initial: Optional[State] = None):
        self._state = initial or State()
        # asyncio.Lock wakes waiters in FIFO order
        self._lock = asyncio.Lock()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> State:
        """The last committed state.  Treat it as read-only."""
        return self._state

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def snapshot(self) -> State:
        """A private deep copy of the committed state."""
        return self._state.model_copy(deep=True)

    async def set(self, mutator: Mutator) -> None:
        """Apply a synchronous mutator as one step."""
        async with self._lock:
            draft = self.snapshot()
            mutator(draft)
            await self._commit(draft)

    async def set_async(self, updater: AsyncUpdater) -> None:
        """Apply an asynchronous updater as one step.

        Updates submitted while *updater* is suspended queue behind it.
        """
        async with self._lock:
            draft = self.snapshot()
            try:
                await updater(draft)
            except BaseException:
                log.debug("Rolling back state step after error")
                raise
            await self._commit(draft)

    async def replace(self, state: State) -> None:
        """Install a whole new state, e.g. one loaded from the database."""
        async with self._lock:
            await self._commit(state.model_copy(deep=True))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with the new state after every committed step.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _commit(self, draft: State) -> None:
        self._state = draft
        for listener in list(self._listeners):
            try:
                result = listener(draft)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # The step is already committed; a failing observer cannot undo it
                log.exception("State listener %r failed", listener)
