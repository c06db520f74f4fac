"""Tests for cell solidity and the movement rule."""

import pytest

from gridplay.collision import cell_is_solid, in_bounds, resolve_move
from gridplay.project import locate

from conftest import avatar, event, project, room, tag


class TestCellIsSolid:

    def test_wall_is_solid(self):
        r = room(walls=[(3, 4)])
        assert cell_is_solid(r, 3, 4)
        assert not cell_is_solid(r, 4, 3)

    def test_solid_tagged_event(self):
        r = room(event(2, 5, 5, tag('solid')))
        assert cell_is_solid(r, 5, 5)

    def test_untagged_event_is_not_solid(self):
        r = room(event(2, 5, 5))
        assert not cell_is_solid(r, 5, 5)

    def test_solidity_follows_relocation(self):
        rock = event(2, 5, 5, tag('solid'))
        proj = project(room(rock))

        locate.relocate(proj, rock, {'room': 0, 'position': [6, 6]})
        assert not cell_is_solid(proj.rooms[0], 5, 5)
        assert cell_is_solid(proj.rooms[0], 6, 6)

        locate.discard(proj, rock)
        assert not cell_is_solid(proj.rooms[0], 6, 6)

    @pytest.mark.parametrize("x,y,expected", [
        (0, 0, True), (15, 15, True), (-1, 0, False), (0, 16, False), (16, 3, False),
    ])
    def test_in_bounds(self, x, y, expected):
        assert in_bounds(x, y) is expected


class TestResolveMove:

    def test_free_move(self):
        me = avatar(x=8, y=8)
        result = resolve_move(room(me), me, 1, 0)

        assert result.moved
        assert not result.bounded and not result.blocked
        assert me.position == [9, 8]
        assert result.touched is None

    def test_blocked_by_wall(self):
        me = avatar(x=8, y=8)
        result = resolve_move(room(me, walls=[(8, 7)]), me, 0, -1)

        assert result.blocked
        assert not result.moved
        assert me.position == [8, 8]

    @pytest.mark.parametrize("x,y,dx,dy", [
        (0, 5, -1, 0), (15, 5, 1, 0), (5, 0, 0, -1), (5, 15, 0, 1),
    ])
    def test_bounded_is_never_blocked(self, x, y, dx, dy):
        me = avatar(x=x, y=y)
        result = resolve_move(room(me), me, dx, dy)

        assert result.bounded
        assert not result.blocked
        assert me.position == [x, y]

    def test_bounded_touches_event_under_avatar(self):
        me = avatar(x=0, y=5)
        mat = event(2, 0, 5)
        result = resolve_move(room(mat, me), me, -1, 0)

        assert result.touched is mat

    def test_blocked_touches_solid_target(self):
        me = avatar(x=4, y=4)
        door = event(2, 5, 4, tag('solid'))
        result = resolve_move(room(me, door), me, 1, 0)

        assert result.blocked
        assert result.touched is door

    def test_target_cell_takes_precedence(self):
        me = avatar(x=4, y=4)
        under = event(2, 4, 4, tag('solid'))
        ahead = event(3, 4, 5, tag('solid'))
        result = resolve_move(room(under, me, ahead), me, 0, 1)

        assert result.touched is ahead

    def test_first_event_in_paint_order_is_touched(self):
        me = avatar(x=4, y=4)
        bottom = event(2, 5, 4)
        top = event(3, 5, 4)
        result = resolve_move(room(me, bottom, top), me, 1, 0)

        assert result.moved
        assert result.touched is bottom

    def test_avatar_is_never_its_own_target(self):
        me = avatar(x=4, y=4)
        result = resolve_move(room(me, walls=[(5, 4)]), me, 1, 0)

        assert result.touched is None
