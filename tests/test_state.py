"""Tests for the state holder and project file loading."""

import json

import pytest
import yaml

from gridplay.project import FieldType, StateManager, load_project_file
from gridplay.project.schema import empty_grid

from conftest import avatar, project, room

PROJECT_DATA = {
    'palettes': [['#000000', '#FFFFFF', '#FF0000']],
    'tiles': [{'id': 1, 'frames': [0, 1]}],
    'rooms': [{
        'id': 0,
        'palette': 0,
        'events': [{
            'id': 1,
            'position': [4, 5],
            'fields': [
                {'key': 'is-player', 'type': 'tag', 'data': True},
                {'key': 'exit', 'type': 'location', 'data': {'room': 0, 'position': [1, 1]}},
            ],
        }],
    }],
}


class TestLoadProjectFile:

    def test_load_json(self, tmp_path):
        path = tmp_path / 'game.json'
        path.write_text(json.dumps(PROJECT_DATA))

        proj = load_project_file(path)

        ev = proj.rooms[0].events[0]
        assert ev.position == [4, 5]
        assert ev.fields[0].type is FieldType.TAG
        assert proj.palettes[0] == ('#000000', '#FFFFFF', '#FF0000')

    def test_load_yaml(self, tmp_path):
        path = tmp_path / 'game.yaml'
        path.write_text(yaml.safe_dump(PROJECT_DATA))

        proj = load_project_file(str(path))

        assert proj.rooms[0].events[0].id == 1
        assert proj.tiles[0].frames == [0, 1]

    def test_room_grids_default_to_zero(self, tmp_path):
        path = tmp_path / 'game.yml'
        path.write_text(yaml.safe_dump(PROJECT_DATA))

        proj = load_project_file(path)

        assert proj.rooms[0].wallmap == empty_grid()
        assert len(proj.rooms[0].tilemap) == 16

    def test_unknown_field_type_rejected(self, tmp_path):
        data = json.loads(json.dumps(PROJECT_DATA))
        data['rooms'][0]['events'][0]['fields'][0]['type'] = 'spell'
        path = tmp_path / 'bad.json'
        path.write_text(json.dumps(data))

        with pytest.raises(ValueError):
            load_project_file(path)


    @pytest.mark.parametrize('position', [[16, 0], [0, -1], [1, 2, 3]])
    def test_position_outside_room_rejected(self, tmp_path, position):
        data = json.loads(json.dumps(PROJECT_DATA))
        data['rooms'][0]['events'][0]['position'] = position
        path = tmp_path / 'bad.json'
        path.write_text(json.dumps(data))

        with pytest.raises(ValueError):
            load_project_file(path)


class TestStateManager:

    def test_copy_from_is_deep(self):
        live = StateManager(project(room(avatar())))
        backup = StateManager()

        backup.copy_from(live)
        live.present.rooms[0].events[0].position[0] = 0

        assert backup.present.rooms[0].events[0].position == [8, 8]
        assert backup.present is not live.present

    def test_load_keeps_resources(self):
        state = StateManager()
        state.load(project(room()), {'tileset': 'tiles.png'})

        copy = StateManager()
        copy.copy_from(state)

        assert copy.resources == {'tileset': 'tiles.png'}
