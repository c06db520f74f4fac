"""
Lua sandbox for per-event touch scripts.

Provides a locked-down Lua runtime (no io, os, debug, load, require or
python bridge) and the fixed capability table scripts are bound to.
"""

from gridplay.lua.engine import ScriptSandbox
from gridplay.lua.api import CAPABILITIES, ScriptRequest, TouchAPI, lua_safe_return

__all__ = ['ScriptSandbox', 'CAPABILITIES', 'ScriptRequest', 'TouchAPI', 'lua_safe_return']
