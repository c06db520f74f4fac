"""Cell solidity and the avatar's single-step movement rule."""

from dataclasses import dataclass
from typing import Optional, Tuple

from gridplay.config import ROOM_SIZE
from gridplay.project.locate import events_at, is_tagged
from gridplay.project.schema import Event, Room


def in_bounds(x: int, y: int) -> bool:
    return 0 <= x < ROOM_SIZE and 0 <= y < ROOM_SIZE


def cell_is_solid(room: Room, x: int, y: int) -> bool:
    """A cell is solid if it is a wall or holds an event tagged "solid"."""
    wall = room.wallmap[y][x] > 0
    solid = any(is_tagged(event, 'solid') for event in events_at(room.events, x, y))
    return wall or solid


@dataclass
class MoveResult:
    """Outcome of one movement attempt."""
    target: Tuple[int, int]
    bounded: bool            # target outside the room, never also blocked
    blocked: bool            # target inside the room but solid
    touched: Optional[Event] = None

    @property
    def moved(self) -> bool:
        return not self.bounded and not self.blocked


def resolve_move(room: Room, avatar: Event, dx: int, dy: int) -> MoveResult:
    """Step the avatar by (dx, dy) if allowed and pick the event to touch.

    The avatar's position is updated in place when the move is taken. The
    touch target is the first event (paint order, avatar excluded) at the
    cell the avatar tried to enter, else the first at the cell it ends on.

    Args:
        room: Room the avatar is in
        avatar: Avatar event (must belong to room)
        dx, dy: Step in cells

    Returns:
        MoveResult describing what happened
    """
    px, py = avatar.position
    tx, ty = px + dx, py + dy

    bounded = not in_bounds(tx, ty)
    blocked = False if bounded else cell_is_solid(room, tx, ty)

    if not bounded and not blocked:
        avatar.position = [tx, ty]

    fx, fy = avatar.position
    touched = next(events_at(room.events, tx, ty, exclude=avatar), None)
    if touched is None:
        touched = next(events_at(room.events, fx, fy, exclude=avatar), None)

    return MoveResult(target=(tx, ty), bounded=bounded, blocked=blocked, touched=touched)
