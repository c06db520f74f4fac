"""
Capability table for touch scripts.

This module provides:
- Value conversion between Python and Lua (both directions)
- @lua_safe_return decorator
- ScriptRequest, the object suspending capabilities yield to the driver
- TouchAPI, which builds the complete set of names a touch script can see

Scripts never receive raw Python containers: lists and dicts are turned
into Lua tables, and Lua tables coming back are turned into lists/dicts.
Events are handed to Lua as opaque references that scripts pass back into
capabilities.
"""

import asyncio
from functools import wraps
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from lupa import lua_type

from gridplay.logging import get_logger
from gridplay.project import locate
from gridplay.project.schema import Event, Location

if TYPE_CHECKING:
    from gridplay.lua.engine import ScriptSandbox
    from gridplay.player import Player

log = get_logger('lua_api')
script_log = get_logger('script')

# Every name a touch script can resolve, in destructuring order
CAPABILITIES = (
    'PLAYER', 'AVATAR', 'EVENT', 'PALETTE',
    'SET_FIELDS', 'FIELD', 'FIELDS',
    'MOVE', 'REMOVE', 'TOUCH', 'EVENT_AT', 'LOCATION_OF',
    'SAY', 'TITLE', 'DIALOGUE', 'DIALOG',
    'LOG', 'DELAY',
)


def _to_lua_value(value: Any, lua_runtime) -> Any:
    """Convert a Python value to a Lua-safe value.

    Safe values:
    - Primitives: None, bool, int, float, str
    - Lua tables: Created via lua.table() for lists/dicts
    - Events: passed through as references
    """
    if value is None:
        return None
    if isinstance(value, (bool, int, float, str, Event)):
        return value

    if isinstance(value, Location):
        value = value.model_dump()

    if isinstance(value, (list, tuple)):
        # Convert to 1-indexed Lua table
        lua_table = lua_runtime.table()
        for i, item in enumerate(value, start=1):
            lua_table[i] = _to_lua_value(item, lua_runtime)
        return lua_table

    if isinstance(value, dict):
        lua_table = lua_runtime.table()
        for k, v in value.items():
            if not isinstance(k, (str, int, float, bool)):
                raise TypeError(
                    f"Dict key must be str/int/float, got {type(k).__name__}"
                )
            lua_table[k] = _to_lua_value(v, lua_runtime)
        return lua_table

    if isinstance(value, bytes):
        raise TypeError("Cannot pass bytes to Lua - decode to str first")

    raise TypeError(
        f"Cannot convert {type(value).__name__} to Lua-safe value. "
        f"Capabilities must return only primitives, events, lists, or dicts."
    )


def _from_lua_value(value: Any) -> Any:
    """Convert a value received from Lua into plain Python data.

    Tables whose keys are exactly 1..n become lists, other tables dicts.
    An empty table becomes an empty list.
    """
    if lua_type(value) != 'table':
        return value

    items = [(k, _from_lua_value(v)) for k, v in value.items()]
    keys = [k for k, _ in items]
    if all(isinstance(k, int) and not isinstance(k, bool) for k in keys) \
            and sorted(keys) == list(range(1, len(keys) + 1)):
        return [v for _, v in sorted(items, key=lambda kv: kv[0])]
    return {k: v for k, v in items}


def lua_safe_return(method: Callable) -> Callable:
    """Decorator that converts capability return values to Lua-safe types."""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        result = method(self, *args, **kwargs)
        return _to_lua_value(result, self._lua)
    return wrapper


class ScriptRequest:
    """Work a suspended script is waiting on."""
    DELAY = 'delay'
    TOUCH = 'touch'
    DIALOGUE = 'dialogue'

    def __init__(self, kind: str, arg: Any = None):
        self.kind = kind
        self.arg = arg

    def __repr__(self) -> str:
        return f"ScriptRequest({self.kind!r}, {self.arg!r})"


class TouchAPI:
    """
    Capabilities exposed to touch scripts.

    One instance serves every script a player runs; the per-touch parts
    (EVENT, AVATAR, PALETTE) are filled in by commands().
    """

    def __init__(self, player: 'Player', sandbox: 'ScriptSandbox'):
        self._player = player
        self._sandbox = sandbox
        self._lua = sandbox.lua

    def commands(self, event: Event) -> Dict[str, Any]:
        """Name -> value for every capability, bound to the touched event."""
        player = self._player
        suspending = self._sandbox.suspending
        dialogue = suspending(self.request_dialogue)
        palette = player.active_palette()
        return {
            'PLAYER': player,
            'AVATAR': player.avatar,
            'EVENT': event,
            'PALETTE': _to_lua_value(list(palette) if palette else None, self._lua),
            'SET_FIELDS': self.set_fields,
            'FIELD': self.field,
            'FIELDS': self.fields,
            'MOVE': self.move,
            'REMOVE': self.remove,
            'TOUCH': suspending(self.request_touch),
            'EVENT_AT': self.event_at,
            'LOCATION_OF': self.location_of,
            'SAY': self.say,
            'TITLE': self.title,
            'DIALOGUE': dialogue,
            'DIALOG': dialogue,
            'LOG': self.log,
            'DELAY': suspending(self.request_delay),
        }

    async def fulfil(self, request: ScriptRequest) -> Any:
        """Await whatever a suspended script asked for; the result resumes it."""
        if request.kind == ScriptRequest.DELAY:
            await asyncio.sleep(max(0.0, float(request.arg or 0)))
        elif request.kind == ScriptRequest.TOUCH:
            await self._player.touch(request.arg)
        elif request.kind == ScriptRequest.DIALOGUE:
            await self._player.dialogue_waiter
        else:
            raise ValueError(f"Unknown script request: {request.kind}")
        return None

    # =========================================================================
    # Fields
    # =========================================================================

    def set_fields(self, event: Event, key: str, type: str, *values: Any) -> None:
        log.lua_call('SET_FIELDS', event.id, key, type, *values)
        locate.replace_fields(event, key, type, *(_from_lua_value(v) for v in values))

    @lua_safe_return
    def field(self, event: Event, key: str, type: Optional[str] = None) -> Any:
        log.lua_call('FIELD', event.id, key, type)
        value = locate.field_data(event, key, type)
        log.lua_result('FIELD', value)
        return value

    @lua_safe_return
    def fields(self, event: Event, key: str, type: Optional[str] = None) -> Any:
        log.lua_call('FIELDS', event.id, key, type)
        values = locate.all_field_data(event, key, type)
        log.lua_result('FIELDS', values)
        return values

    # =========================================================================
    # Events and locations
    # =========================================================================

    def move(self, event: Event, location: Any) -> None:
        location = _from_lua_value(location)
        log.lua_call('MOVE', event.id, location)
        locate.relocate(self._player.data, event, location)

    def remove(self, event: Event) -> None:
        log.lua_call('REMOVE', event.id)
        locate.discard(self._player.data, event)

    def event_at(self, location: Any) -> Optional[Event]:
        location = _from_lua_value(location)
        log.lua_call('EVENT_AT', location)
        found = locate.event_at_location(self._player.data, location)
        log.lua_result('EVENT_AT', found.id if found else None)
        return found

    @lua_safe_return
    def location_of(self, event: Event) -> Optional[Location]:
        log.lua_call('LOCATION_OF', event.id)
        return locate.location_of_event(self._player.data, event)

    # =========================================================================
    # Dialogue and diagnostics
    # =========================================================================

    def say(self, text: Any, options: Any = None) -> None:
        log.lua_call('SAY', text)
        self._player.say(str(text), _from_lua_value(options))

    def title(self, text: Any) -> None:
        log.lua_call('TITLE', text)
        self._player.title(str(text))

    def log(self, text: Any) -> None:
        script_log.info("%s", text)

    # =========================================================================
    # Suspending requests (wrapped by ScriptSandbox.suspending)
    # =========================================================================

    def request_touch(self, event: Event) -> ScriptRequest:
        log.lua_call('TOUCH', event.id)
        return ScriptRequest(ScriptRequest.TOUCH, event)

    def request_dialogue(self) -> ScriptRequest:
        return ScriptRequest(ScriptRequest.DIALOGUE)

    def request_delay(self, seconds: Any = 0) -> ScriptRequest:
        log.lua_call('DELAY', seconds)
        return ScriptRequest(ScriptRequest.DELAY, seconds)
