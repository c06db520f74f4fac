"""
gridplay logging

Per-module loggers with environment-driven levels, plus tracing helpers for
the Lua capability table.

Usage:
    from gridplay.logging import get_logger

    log = get_logger('player')
    log.debug("Avatar moved to %s", position)
    log.lua_call("MOVE", event.id, location)  # Only when Lua call tracing is on

Configuration:
    Environment variables:
        GRIDPLAY_LOG_LEVEL=DEBUG          # Global default level
        GRIDPLAY_LOG_PLAYER=DEBUG         # Module-specific level
        GRIDPLAY_LOG_LUA_CALLS=1          # Trace capability calls from scripts
        GRIDPLAY_LOG_LUA_SCRIPTS=1        # Log which touch scripts run

    Or programmatically:
        from gridplay.logging import configure_logging
        configure_logging(level='DEBUG', modules={'lua_sandbox': 'INFO'})
"""

import os
import sys
import traceback
from enum import IntEnum
from functools import lru_cache
from typing import Any, Dict, Optional, TextIO


class LogLevel(IntEnum):
    TRACE = 5
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50
    OFF = 100


# Short labels printed in front of each message
_LABELS = {
    LogLevel.TRACE: 'TRACE',
    LogLevel.DEBUG: 'DEBUG',
    LogLevel.INFO: 'INFO',
    LogLevel.WARNING: 'WARN',
    LogLevel.ERROR: 'ERROR',
    LogLevel.CRITICAL: 'CRIT',
}

_ENV_PREFIX = 'GRIDPLAY_LOG_'
_SWITCHES = ('LEVEL', 'LUA_CALLS', 'LUA_SCRIPTS')

_settings: Dict[str, Any] = {
    'level': LogLevel.INFO,
    'modules': {},
    'lua_calls': False,
    'lua_scripts': False,
    'stream': None,          # resolved to sys.stdout on write
}


def parse_level(name: str) -> LogLevel:
    """LogLevel for a name such as 'debug' or 'WARN'; unknown names give INFO."""
    name = name.strip().upper()
    if name == 'WARN':
        return LogLevel.WARNING
    try:
        return LogLevel[name]
    except KeyError:
        return LogLevel.INFO


def _truthy(value: Optional[str]) -> bool:
    return (value or '').lower() in ('1', 'true', 'yes', 'on')


def _read_environment() -> None:
    if os.environ.get(_ENV_PREFIX + 'LEVEL'):
        _settings['level'] = parse_level(os.environ[_ENV_PREFIX + 'LEVEL'])

    for name, value in os.environ.items():
        if name.startswith(_ENV_PREFIX) and name[len(_ENV_PREFIX):] not in _SWITCHES:
            _settings['modules'][name[len(_ENV_PREFIX):].lower()] = parse_level(value)

    _settings['lua_calls'] = _truthy(os.environ.get(_ENV_PREFIX + 'LUA_CALLS'))
    _settings['lua_scripts'] = _truthy(os.environ.get(_ENV_PREFIX + 'LUA_SCRIPTS'))


def configure_logging(
    level: str = 'INFO',
    modules: Optional[Dict[str, str]] = None,
    lua_calls: bool = False,
    lua_scripts: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Set logging levels and script tracing at runtime.

    Args:
        level: Level used by modules without their own setting
        modules: Module name -> level overrides, merged into the current ones
        lua_calls: Trace capability calls made by touch scripts
        lua_scripts: Log each touch script run
        stream: Where lines are written (default: sys.stdout)
    """
    _settings['level'] = parse_level(level)
    for module, module_level in (modules or {}).items():
        _settings['modules'][module.lower()] = parse_level(module_level)
    _settings['lua_calls'] = lua_calls
    _settings['lua_scripts'] = lua_scripts
    _settings['stream'] = stream


def enable_all_logging() -> None:
    """DEBUG everywhere, with both kinds of script tracing on."""
    configure_logging(level='DEBUG', lua_calls=True, lua_scripts=True,
                      stream=_settings['stream'])


def disable_logging() -> None:
    _settings['level'] = LogLevel.OFF
    _settings['lua_calls'] = False
    _settings['lua_scripts'] = False


_read_environment()


class GameLogger:
    """A named logger; its level can be overridden per module."""

    def __init__(self, module: str):
        self.module = module
        self._key = module.lower().replace('.', '_').replace('/', '_')

    @property
    def level(self) -> LogLevel:
        return _settings['modules'].get(self._key, _settings['level'])

    def _write(self, level: LogLevel, label: str, msg: str, args: tuple = ()) -> None:
        if level < self.level:
            return
        if args:
            try:
                msg = msg % args
            except (TypeError, ValueError):
                msg = f"{msg} {args}"
        print(f"[{self.module}] {label}: {msg}", file=_settings['stream'] or sys.stdout)

    def log(self, level: LogLevel, msg: str, *args) -> None:
        self._write(level, _LABELS.get(level, level.name), msg, args)

    def trace(self, msg: str, *args) -> None:
        self.log(LogLevel.TRACE, msg, *args)

    def debug(self, msg: str, *args) -> None:
        self.log(LogLevel.DEBUG, msg, *args)

    def info(self, msg: str, *args) -> None:
        self.log(LogLevel.INFO, msg, *args)

    def warning(self, msg: str, *args) -> None:
        self.log(LogLevel.WARNING, msg, *args)

    def error(self, msg: str, *args) -> None:
        self.log(LogLevel.ERROR, msg, *args)

    def critical(self, msg: str, *args) -> None:
        self.log(LogLevel.CRITICAL, msg, *args)

    def exception(self, msg: str, *args) -> None:
        """Log an error plus the traceback of the exception being handled."""
        self.error(msg, *args)
        exc = sys.exc_info()[1]
        if exc is not None:
            self.log_traceback(exc)

    def log_traceback(self, exc: BaseException) -> None:
        """Write the exception's traceback at ERROR level, one line per entry."""
        text = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        for line in text.splitlines():
            if line.strip():
                self._write(LogLevel.ERROR, 'TRACE', line)

    # Script tracing

    def lua_call(self, fn_name: str, *args) -> None:
        if _settings['lua_calls']:
            shown = ', '.join(repr(a) for a in args)
            self._write(LogLevel.DEBUG, 'LUA→', f"{fn_name}({shown})")

    def lua_result(self, fn_name: str, result: Any) -> None:
        if _settings['lua_calls']:
            self._write(LogLevel.DEBUG, 'LUA←', f"{fn_name} = {result!r}")

    def lua_script(self, event_id: Any, action: str = 'run') -> None:
        if _settings['lua_scripts']:
            self._write(LogLevel.DEBUG, 'LUA', f"{action} touch script of event {event_id}")


@lru_cache(maxsize=64)
def get_logger(module: str) -> GameLogger:
    """Cached per module name, so repeated calls share one logger."""
    return GameLogger(module)
