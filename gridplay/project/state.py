"""
Project state holder.

StateManager is the minimal state-management collaborator the player needs:
the present project, the resources it references, and deep-copying between
managers so one manager can hold a backup of another. The runtime never
writes project files; load_project_file only reads them.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from gridplay.logging import get_logger
from .schema import Project

log = get_logger('state')


class StateManager:
    """Holds the present project plus named resources (e.g. the tileset)."""

    def __init__(self, project: Optional[Project] = None):
        self._present: Project = project if project is not None else Project()
        self.resources: Dict[str, Any] = {}

    @property
    def present(self) -> Project:
        return self._present

    def load(self, project: Project, resources: Optional[Dict[str, Any]] = None) -> None:
        """Replace the present project. The project is used as-is, not copied."""
        self._present = project
        self.resources = dict(resources or {})

    def copy_from(self, other: 'StateManager') -> None:
        """Make this manager an independent deep copy of another."""
        self._present = other.present.model_copy(deep=True)
        self.resources = dict(other.resources)


def load_project_file(path: Union[str, Path]) -> Project:
    """Read a project from a .json, .yaml or .yml file."""
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix.lower() in ('.yaml', '.yml'):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    project = Project.model_validate(data or {})
    log.info("Loaded project %s (%d rooms)", path.name, len(project.rooms))
    return project
