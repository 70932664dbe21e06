from __future__ import annotations

import pytest

from storyloom.models import State
from storyloom.state.store import StateStore

from helpers import action, make_state, narration


@pytest.fixture
def story_state() -> State:
    return make_state(
        action("go north"),
        narration("The road bends into fog."),
        action("light a torch"),
        narration("Shadows scatter from the flame."),
        action("call out"),
    )


@pytest.fixture
def store(story_state: State) -> StateStore:
    return StateStore(story_state)
