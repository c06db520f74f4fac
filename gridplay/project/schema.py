"""
Project data model.

A project is an ordered list of rooms, each a 16x16 grid with an ordered list
of events. Events carry an ordered list of typed fields that drive their
behaviour when touched.

Room event order is paint order: the last event is drawn on top and is the
most recently touched-or-moved one.
"""

from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, Field as PydanticField, field_validator

from gridplay.config import ROOM_SIZE


def empty_grid() -> List[List[int]]:
    """A ROOM_SIZE x ROOM_SIZE grid of zeros, indexed [y][x]."""
    return [[0] * ROOM_SIZE for _ in range(ROOM_SIZE)]


class FieldType(str, Enum):
    """Type tag of an event field; decides the shape of its data."""
    TAG = 'tag'                  # bool, presence means true
    TILE = 'tile'                # tile id
    DIALOGUE = 'dialogue'        # str
    LOCATION = 'location'        # {room, position}
    JAVASCRIPT = 'javascript'    # touch script source (project-data name)
    LUA = 'lua'                  # touch script source
    JSON = 'json'                # any structured value
    TEXT = 'text'                # str
    FILE = 'file'                # resource id


# Field types whose data is run by the script sandbox
SCRIPT_TYPES = (FieldType.LUA, FieldType.JAVASCRIPT)


class Field(BaseModel):
    """A typed key/value record on an event. Keys may repeat."""
    key: str
    type: FieldType
    data: Any = None


class Location(BaseModel):
    """A cell in a room: room index into Project.rooms plus [x, y]."""
    room: int
    position: List[int]

    def __str__(self) -> str:
        x, y = self.position
        return f"Location(room={self.room}, x={x}, y={y})"


class Event(BaseModel):
    """An interactive entity placed in exactly one room."""
    id: int
    position: List[int] = PydanticField(default_factory=lambda: [0, 0])
    fields: List[Field] = PydanticField(default_factory=list)

    @field_validator('position')
    @classmethod
    def validate_position(cls, v: List[int]) -> List[int]:
        """Position must be [x, y] inside the room."""
        if len(v) != 2 or not all(0 <= c < ROOM_SIZE for c in v):
            raise ValueError(f'Position must be [x, y] in [0, {ROOM_SIZE}), got {v}')
        return v

    def __str__(self) -> str:
        return f"Event(id={self.id}, position={self.position})"


class Room(BaseModel):
    """A 16x16 room. Only wallmap and events have meaning to the runtime."""
    id: int = 0
    palette: int = 0
    events: List[Event] = PydanticField(default_factory=list)
    tilemap: List[List[int]] = PydanticField(default_factory=empty_grid)
    wallmap: List[List[int]] = PydanticField(default_factory=empty_grid)
    highmap: List[List[int]] = PydanticField(default_factory=empty_grid)
    backmap: List[List[int]] = PydanticField(default_factory=empty_grid)
    foremap: List[List[int]] = PydanticField(default_factory=empty_grid)


class Tile(BaseModel):
    """A tile with its animation frames (indices into the tileset)."""
    id: int
    frames: List[int] = PydanticField(default_factory=list)


# (background, foreground, highlight)
Palette = Tuple[str, str, str]


class Project(BaseModel):
    """Everything the runtime plays: rooms, palettes, tiles, tileset."""
    rooms: List[Room] = PydanticField(default_factory=list)
    palettes: List[Palette] = PydanticField(default_factory=list)
    tiles: List[Tile] = PydanticField(default_factory=list)
    tileset: Optional[str] = None
