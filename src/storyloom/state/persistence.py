from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storyloom.config import settings
from storyloom.db.tables import DBSavedState
from storyloom.models.state import State

log = logging.getLogger(__name__)

# Fields that only describe what the UI currently shows
_TRANSIENT_FIELDS = {"history_pagination"}


class StatePersistence:
    """Saves and loads ``State`` snapshots in the ``saved_states`` table.

    Subscribe :meth:`save` to a ``StateStore`` to persist every committed
    step.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        state_key: str | None = None,
    ):
        if session_factory is None:
            from storyloom.db.database import async_session

            session_factory = async_session
        self._sessions = session_factory
        self._key = state_key or settings.state_key

    @staticmethod
    def dump(state: State) -> str:
        return state.model_dump_json(exclude=_TRANSIENT_FIELDS)

    async def save(self, state: State) -> None:
        payload = self.dump(state)
        async with self._sessions() as db:
            result = await db.execute(
                select(DBSavedState).where(DBSavedState.state_key == self._key)
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = DBSavedState(state_key=self._key)
                db.add(row)
            row.state_json = payload
            row.event_count = len(state.events)
            await db.commit()
        log.debug("Saved state '%s' (%d events)", self._key, len(state.events))

    async def load(self) -> Optional[State]:
        async with self._sessions() as db:
            result = await db.execute(
                select(DBSavedState).where(DBSavedState.state_key == self._key)
            )
            row = result.scalar_one_or_none()
        if row is None:
            return None
        try:
            state = State.model_validate_json(row.state_json)
        except ValidationError as exc:
            log.error("Saved state '%s' is corrupt: %s", self._key, exc)
            raise
        log.info("Loaded state '%s' (%d events)", self._key, len(state.events))
        return state
