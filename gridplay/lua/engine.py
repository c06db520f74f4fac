"""
Script Sandbox - Lua runtime for per-event touch scripts.

The sandbox:
1. Initializes a Lua runtime with everything but language primitives removed
2. Validates that no escape hatch (python bridge, io, os, load, ...) is left
3. Compiles a touch script as the body of a function that receives the
   capability table and binds every capability to a local of the same name
4. Runs that function as a Lua coroutine driven from asyncio

Capabilities that have to wait (DELAY, TOUCH, DIALOGUE) are Lua closures that
yield a ScriptRequest out of the coroutine. The driver awaits the request on
the Python side and resumes the coroutine with the result, so a script reads
as straight-line code:

    SAY("The door creaks open.")
    DIALOGUE()
    MOVE(AVATAR, {room=1, position={7, 15}})
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from lupa import LuaRuntime

from gridplay.logging import get_logger
from gridplay.lua.api import CAPABILITIES, ScriptRequest

log = get_logger('lua_sandbox')


# Globals that must be nil once the environment is set up
FORBIDDEN_GLOBALS = (
    # Python bridge
    'python', '_python',
    # LuaJIT extras
    'ffi', 'jit',
    # Code loading
    'load', 'loadstring', 'loadfile', 'dofile', 'require', 'package', 'module',
    # Environment and metatables
    'debug', 'getfenv', 'setfenv', 'getmetatable', 'setmetatable',
    'rawget', 'rawset', 'rawequal', 'rawlen', '_G',
    # Runtime internals
    'collectgarbage', 'newproxy', 'coroutine',
    # Host access
    'io', 'os',
)


def _attribute_filter(obj, name, is_setting):
    """Decide which attributes of a Python object a script may touch.

    Only public data attributes pass: names starting with an underscore are
    refused outright, and reading anything callable (methods, bound
    functions) is refused too.
    """
    if name.startswith('_'):
        raise AttributeError(f'{type(obj).__name__}.{name} is not readable from scripts')

    if not is_setting:
        try:
            value = getattr(obj, name, None)
        except Exception:
            value = None
        if callable(value) and not isinstance(value, type):
            raise AttributeError(f'{type(obj).__name__}.{name} cannot be called from scripts')

    return name


class ScriptSandbox:
    """
    Lua runtime shared by every touch script a player runs.

    Usage:
        sandbox = ScriptSandbox()
        api = TouchAPI(player, sandbox)
        await sandbox.run(source, api.commands(event), api.fulfil)
    """

    def __init__(self):
        # No python.eval or python.builtins; Python objects go through the filter
        self._lua = LuaRuntime(
            register_eval=False,
            register_builtins=False,
            unpack_returned_tuples=True,
            attribute_filter=_attribute_filter,
        )
        self._make_suspending = None
        self._setup_lua_environment()

    @property
    def lua(self) -> LuaRuntime:
        return self._lua

    def _setup_lua_environment(self) -> None:
        """Clear all globals and reinstall only language primitives.

        coroutine.yield is captured in a closure before the globals go, so
        suspending capabilities can yield while scripts cannot reach the
        coroutine library themselves.
        """
        g = self._lua.globals()

        safe_globals = {
            'pairs': g.pairs,
            'ipairs': g.ipairs,
            'type': g.type,
            'tostring': g.tostring,
            'tonumber': g.tonumber,
            'select': g.select,
            'unpack': g.table.unpack if g.table.unpack is not None else g.unpack,
            'pcall': g.pcall,
            'error': g.error,
            'next': g.next,
            'math': g.math,
        }

        # string.dump serializes functions to bytecode, string.rep is a memory DoS
        self._lua.execute("""
            local mt = getmetatable("")
            if mt and mt.__index then
                mt.__index.dump = nil
                mt.__index.rep = nil
            end
        """)

        self._make_suspending = self._lua.execute("""
            local yield = coroutine.yield
            return function(request)
                return function(...)
                    return yield(request(...))
                end
            end
        """)

        for key in list(g.keys()):
            g[key] = None

        for key, value in safe_globals.items():
            g[key] = value

        self._validate_sandbox()

    def _validate_sandbox(self) -> None:
        """Refuse to run if any escape hatch survived the setup."""
        problems = [
            f'global {name} is reachable'
            for name in FORBIDDEN_GLOBALS
            if self._lua.eval(f'{name} ~= nil')
        ]
        for method in ('dump', 'rep'):
            if self._lua.eval(f'("").{method}') is not None:
                problems.append(f'string method {method} is reachable')
        if self._make_suspending is None:
            problems.append('no yield helper for suspending capabilities')

        for problem in problems:
            log.critical("Sandbox check: %s", problem)
        if problems:
            raise RuntimeError(
                f'Lua sandbox validation failed: {"; ".join(problems)}'
            )

    # =========================================================================
    # Scripts
    # =========================================================================

    def suspending(self, request_factory: Callable[..., ScriptRequest]) -> Any:
        """Lua function that yields request_factory(...) out of the running script."""
        return self._make_suspending(request_factory)

    def compile(self, source: str) -> Any:
        """Compile a touch script into a Lua function taking the capability table.

        The preamble shares the first line with the function header, so line
        numbers in error messages are the script's own line numbers plus one.
        """
        names = ', '.join(CAPABILITIES)
        values = ', '.join(f'COMMANDS.{name}' for name in CAPABILITIES)
        chunk = (
            f'return function(COMMANDS) local {names} = {values}; local function body()\n'
            f'{source}\n'
            f'end body() end'
        )
        return self._lua.execute(chunk)

    async def run(
        self,
        source: str,
        commands: Dict[str, Any],
        fulfil: Callable[[ScriptRequest], Awaitable[Any]],
        alive: Optional[Callable[[], bool]] = None,
    ) -> None:
        """Run a touch script to completion.

        Lua errors and exceptions raised by capabilities propagate to the
        caller; the touch boundary decides how to present them. When `alive`
        is given and turns false while the script is suspended, the script
        is abandoned at that suspension point.
        """
        fn = self.compile(source)
        thread = fn.coroutine(self._lua.table_from(commands))

        reply = None
        while True:
            try:
                request = thread.send(reply)
            except StopIteration:
                return
            if isinstance(request, ScriptRequest):
                log.trace("Script suspended on %r", request)
                reply = await fulfil(request)
                if alive is not None and not alive():
                    log.debug("Abandoning script suspended on %r", request)
                    return
            else:
                reply = None
