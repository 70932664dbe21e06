from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class World(BaseModel):
    """The setting the story takes place in."""

    name: str = "[name]"
    description: str = "[description]"


class Location(BaseModel):
    """A named place in the world."""

    name: str
    type: Literal["tavern", "market", "road"] = "road"
    description: str = ""


class Character(BaseModel):
    """A character in the story; the protagonist is one too."""

    name: str = "[name]"
    gender: Literal["male", "female"] = "male"
    race: Literal["human", "elf", "dwarf"] = "human"
    biography: str = "[biography]"
    location_index: int = 0

    def to_prompt_text(self) -> str:
        return f"{self.name} ({self.gender} {self.race}): {self.biography}"
