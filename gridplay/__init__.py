"""
gridplay - runtime for small tile-based games of 16x16 rooms.

Touching an event runs either its Lua touch script or the standard pipeline
(dialogue, exit, one-time removal, ending, avatar swap).

Usage:
    from gridplay import Player, load_project_file

    player = Player()
    await player.load(load_project_file('castle.yaml'))
"""

from gridplay.player import Player, PlayerState, RenderFrame
from gridplay.project import Project, load_project_file

__all__ = ['Player', 'PlayerState', 'RenderFrame', 'Project', 'load_project_file']
