"""
Lookups over the project tree: fields on an event, events by id or cell,
and the two structural mutations the runtime performs during play
(relocate and discard).

Event membership is always decided by identity, never by value equality.
"""

from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union

from gridplay.config import ROOM_SIZE

from .schema import Event, Field, FieldType, Location, Project, Room

FieldTypes = Union[FieldType, str, Tuple[Union[FieldType, str], ...], None]
LocationLike = Union[Location, dict]


# =============================================================================
# Fields
# =============================================================================

def _type_matches(field: Field, type: FieldTypes) -> bool:
    if type is None:
        return True
    if isinstance(type, tuple):
        return field.type in type
    return field.type == type


def fields_by_key(event: Event, key: str, type: FieldTypes = None) -> Iterator[Field]:
    """Yield the event's fields with this key (and type, if given), in order."""
    return (f for f in event.fields if f.key == key and _type_matches(f, type))


def first_field(event: Event, key: str, type: FieldTypes = None) -> Optional[Field]:
    return next(fields_by_key(event, key, type), None)


def field_data(event: Event, key: str, type: FieldTypes = None) -> Any:
    """Data of the first matching field, or None."""
    field = first_field(event, key, type)
    return field.data if field is not None else None


def all_field_data(event: Event, key: str, type: FieldTypes = None) -> List[Any]:
    return [f.data for f in fields_by_key(event, key, type)]


def is_tagged(event: Event, key: str) -> bool:
    return first_field(event, key, FieldType.TAG) is not None


def clear_fields(event: Event, key: str, type: FieldTypes = None) -> None:
    event.fields = [f for f in event.fields if not (f.key == key and _type_matches(f, type))]


def replace_fields(event: Event, key: str, type: Union[FieldType, str], *values: Any) -> None:
    """Drop every field matching key and type, then append one field per value."""
    clear_fields(event, key, type)
    event.fields.extend(Field(key=key, type=type, data=value) for value in values)


# =============================================================================
# Events
# =============================================================================

def all_events(project: Project) -> Iterator[Event]:
    for room in project.rooms:
        yield from room.events


def event_by_id(project: Project, event_id: int) -> Optional[Event]:
    return next((e for e in all_events(project) if e.id == event_id), None)


def _room_index_of_event(project: Project, event: Event) -> Optional[int]:
    for index, room in enumerate(project.rooms):
        if any(e is event for e in room.events):
            return index
    return None


def room_of_event(project: Project, event: Event) -> Optional[Room]:
    index = _room_index_of_event(project, event)
    return project.rooms[index] if index is not None else None


def events_at(
    events: Iterable[Event],
    x: int,
    y: int,
    exclude: Optional[Event] = None,
) -> Iterator[Event]:
    """Yield events at (x, y) in paint order, skipping `exclude`."""
    return (
        e for e in events
        if e is not exclude and e.position[0] == x and e.position[1] == y
    )


def _as_location(location: LocationLike) -> Location:
    return Location.model_validate(location)


def room_at(project: Project, index: int) -> Room:
    """The room with this index; negative or missing indices are an error."""
    if not 0 <= index < len(project.rooms):
        raise IndexError(f"no room {index} (project has {len(project.rooms)})")
    return project.rooms[index]


def location_of_event(project: Project, event: Event) -> Optional[Location]:
    index = _room_index_of_event(project, event)
    if index is None:
        return None
    return Location(room=index, position=list(event.position))


def event_at_location(project: Project, location: LocationLike) -> Optional[Event]:
    """First event (paint order) at the location's cell, or None."""
    location = _as_location(location)
    room = room_at(project, location.room)
    x, y = location.position
    return next(events_at(room.events, x, y), None)


def discard(project: Project, event: Event) -> None:
    """Remove the event from its owning room. No-op if it has none."""
    room = room_of_event(project, event)
    if room is None:
        return
    room.events = [e for e in room.events if e is not event]


def relocate(project: Project, event: Event, location: LocationLike) -> None:
    """Move the event to the location, appending it on top of that room's events.

    The destination is checked first, so a bad location leaves the event
    where it was.
    """
    if not isinstance(event, Event):
        raise TypeError(f"can only relocate events, not {type(event).__name__}")

    location = _as_location(location)
    room = room_at(project, location.room)
    x, y = location.position
    if not (0 <= x < ROOM_SIZE and 0 <= y < ROOM_SIZE):
        raise ValueError(f"position ({x}, {y}) is outside the room")

    discard(project, event)
    room.events.append(event)
    event.position = [x, y]
