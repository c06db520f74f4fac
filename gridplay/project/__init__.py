"""
Project data model, lookups, and the state holder the player plays from.
"""

from gridplay.project.schema import (
    Event,
    Field,
    FieldType,
    Location,
    Palette,
    Project,
    Room,
    SCRIPT_TYPES,
    Tile,
    empty_grid,
)
from gridplay.project.state import StateManager, load_project_file

__all__ = [
    'Event', 'Field', 'FieldType', 'Location', 'Palette', 'Project', 'Room',
    'SCRIPT_TYPES', 'Tile', 'empty_grid', 'StateManager', 'load_project_file',
]
