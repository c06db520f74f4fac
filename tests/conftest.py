"""Shared builders and fixtures for gridplay tests."""

import asyncio
import io
import random

import pytest

from gridplay import logging as gp_logging
from gridplay.player import Player
from gridplay.project.schema import Event, Field, Project, Room, empty_grid

PALETTES = [
    ('#000000', '#FFFFFF', '#FF00FF'),
    ('#112233', '#445566', '#778899'),
]


def field(key, type, data=None):
    return Field(key=key, type=type, data=data)


def tag(key):
    return Field(key=key, type='tag', data=True)


def event(id, x, y, *fields):
    return Event(id=id, position=[x, y], fields=list(fields))


def avatar(id=1, x=8, y=8, *fields):
    return event(id, x, y, tag('is-player'), *fields)


def room(*events, id=0, palette=0, walls=()):
    """Room holding the given events; `walls` is an iterable of (x, y)."""
    wallmap = empty_grid()
    for x, y in walls:
        wallmap[y][x] = 1
    return Room(id=id, palette=palette, events=list(events), wallmap=wallmap)


def project(*rooms):
    return Project(rooms=list(rooms), palettes=list(PALETTES))


async def play_through(player, coro, limit=1000):
    """Run `coro` while dismissing every dialogue page it shows.

    Returns the visible text of each page seen, in order.
    """
    seen = []
    task = asyncio.ensure_future(coro)
    for _ in range(limit):
        await asyncio.sleep(0)
        page = player.dialogue.current
        if page is not None:
            if all(p is not page for p in seen):
                seen.append(page)
            player.dialogue.skip()
        elif task.done():
            break
    await task
    return [p.glyphs for p in seen]


@pytest.fixture
def player():
    return Player(rng=random.Random(1234))


@pytest.fixture
def loaded(player):
    """Factory: load a project into the player and return the player."""
    def _load(proj):
        asyncio.run(play_through(player, player.load(proj)))
        return player
    return _load


@pytest.fixture
def stream():
    """Capture log output, restoring the previous configuration afterwards."""
    saved = dict(gp_logging._settings)
    saved['modules'] = dict(saved['modules'])
    buffer = io.StringIO()
    gp_logging.configure_logging(level='DEBUG', stream=buffer)
    yield buffer
    gp_logging._settings.clear()
    gp_logging._settings.update(saved)
