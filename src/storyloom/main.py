"""storyloom — interactive narrative engine API.

Run with:  uvicorn storyloom.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

# Configure logging for all storyloom modules
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

from fastapi import FastAPI

from storyloom.api.dependencies import get_store
from storyloom.api.events import router as events_router
from storyloom.api.providers import router as providers_router
from storyloom.db.database import init_db
from storyloom.state.persistence import StatePersistence

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the saved story on startup and persist every change after it."""
    await init_db()
    persistence = StatePersistence()
    store = get_store()
    saved = await persistence.load()
    if saved is not None:
        await store.replace(saved)
    unsubscribe = store.subscribe(persistence.save)
    yield
    unsubscribe()


app = FastAPI(
    title="storyloom",
    description=(
        "Interactive narrative engine with an editable, versioned event "
        "timeline and LLM-driven regeneration."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

# ── API routers ──────────────────────────────────────────────────────────
app.include_router(events_router)
app.include_router(providers_router)
