"""Timeline events.

An event is one atomic entry in the story timeline.  Events are frozen:
changing the timeline always means replacing the event at a position,
never editing one in place.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class ActionEvent(BaseModel):
    """Something the protagonist does."""

    model_config = ConfigDict(frozen=True)

    type: Literal["action"] = "action"
    action: str


class NarrationEvent(BaseModel):
    """Narrator prose describing what happens next."""

    model_config = ConfigDict(frozen=True)

    type: Literal["narration"] = "narration"
    text: str
    location_index: int = 0
    referenced_character_indices: List[int] = Field(default_factory=list)


class CharacterIntroductionEvent(BaseModel):
    """A character from ``State.characters`` enters the story."""

    model_config = ConfigDict(frozen=True)

    type: Literal["character_introduction"] = "character_introduction"
    character_index: int


class LocationChangeEvent(BaseModel):
    """The protagonist moves to another location."""

    model_config = ConfigDict(frozen=True)

    type: Literal["location_change"] = "location_change"
    location_index: int
    present_character_indices: List[int] = Field(default_factory=list)


Event = Annotated[
    Union[ActionEvent, NarrationEvent, CharacterIntroductionEvent, LocationChangeEvent],
    Field(discriminator="type"),
]

EventAdapter: TypeAdapter[Event] = TypeAdapter(Event)
