#!/usr/bin/env python3
"""
gridplay Launcher - play a project in a pygame window

Draws each room as flat palette-colored cells (walls and events in the
foreground color, the avatar in the highlight color) with the current
dialogue page as text. Tile art is not rasterized.

Controls:
    Arrow keys / WASD   move
    Space / Enter       advance dialogue
    R                   restart from the beginning
    Esc / Q             quit

Usage:
    python gridplay_game.py my_project.yaml
    python gridplay_game.py my_project.json --scale 24 --seed 7
"""

import argparse
import asyncio
import random
import sys
from typing import Optional, Set

import pygame
import yaml

from gridplay import config
from gridplay.logging import get_logger
from gridplay.player import Player, RenderFrame
from gridplay.project import load_project_file

log = get_logger('launcher')

MOVE_KEYS = {
    pygame.K_LEFT: (-1, 0), pygame.K_a: (-1, 0),
    pygame.K_RIGHT: (1, 0), pygame.K_d: (1, 0),
    pygame.K_UP: (0, -1), pygame.K_w: (0, -1),
    pygame.K_DOWN: (0, 1), pygame.K_s: (0, 1),
}
PROCEED_KEYS = (pygame.K_SPACE, pygame.K_RETURN)

FALLBACK_PALETTE = ('#000000', '#FFFFFF', '#808080')


def _color(value: Optional[str], fallback: str) -> pygame.Color:
    try:
        return pygame.Color(value or fallback)
    except ValueError:
        return pygame.Color(fallback)


class GridView:
    """Draws RenderFrames onto a pygame surface."""

    def __init__(self, screen: pygame.Surface, scale: int):
        self.screen = screen
        self.scale = scale
        self.font = pygame.font.Font(None, max(16, scale))
        self.page_color: Optional[str] = None
        self.last_frame: Optional[RenderFrame] = None

    def on_render(self, frame: RenderFrame) -> None:
        self.last_frame = frame

    def on_page_color(self, color: str) -> None:
        self.page_color = color

    def draw(self, avatar_id: Optional[int]) -> None:
        frame = self.last_frame
        self.screen.fill(_color(self.page_color, '#000000'))
        if frame is None:
            return

        background, foreground, highlight = frame.palette or FALLBACK_PALETTE
        s = self.scale

        if frame.room is not None:
            self.screen.fill(_color(background, '#000000'), (0, 0, s * config.ROOM_SIZE, s * config.ROOM_SIZE))
            for y, row in enumerate(frame.room.wallmap):
                for x, wall in enumerate(row):
                    if wall:
                        self.screen.fill(_color(foreground, '#FFFFFF'), (x * s, y * s, s, s))

        for event in frame.events:
            x, y = event.position
            if event.id == avatar_id:
                color = _color(highlight, '#808080')
            else:
                color = _color(foreground, '#FFFFFF')
            # Animation frame 1 shrinks events by a pixel so movement is visible
            inset = 2 + frame.frame
            self.screen.fill(color, (x * s + inset, y * s + inset, s - 2 * inset, s - 2 * inset))

        if frame.dialogue is not None:
            self._draw_dialogue(frame)

    def _draw_dialogue(self, frame: RenderFrame) -> None:
        page = frame.dialogue
        options = page.options
        s = self.scale
        width = s * config.ROOM_SIZE
        height = s * 4
        top = int((width - height) * frame.dialogue_anchor)

        panel = _color(options.get('panelColor') or options.get('backgroundColor'), '#000000')
        text_color = _color(options.get('textColor'), '#FFFFFF')

        self.screen.fill(panel, (s // 2, top, width - s, height))
        line_height = self.font.get_linesize()
        for i, line in enumerate(page.visible_text.split('\n')):
            surface = self.font.render(line, True, text_color)
            self.screen.blit(surface, (s, top + s // 2 + i * line_height))


def report_failure(task: asyncio.Future) -> None:
    """Done-callback for launcher tasks: log whatever they raised."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.error("Background task failed: %s", exc)
        log.log_traceback(exc)


async def play(args, player: Player, project) -> int:
    pygame.init()
    scale = args.scale
    size = scale * config.ROOM_SIZE
    screen = pygame.display.set_mode((size, size))
    pygame.display.set_caption(f"gridplay - {args.project}")

    view = GridView(screen, scale)
    player.channel.subscribe('render', view.on_render)
    player.channel.subscribe('page-color', view.on_page_color)

    # Moves and restarts may wait on dialogue, so they run as tasks while the
    # loop keeps feeding input and frames.
    pending: Set[asyncio.Task] = set()

    def spawn(coro) -> None:
        task = asyncio.ensure_future(coro)
        pending.add(task)
        task.add_done_callback(pending.discard)
        task.add_done_callback(report_failure)

    spawn(player.load(project))

    clock = pygame.time.Clock()
    running = True

    while running:
        dt = clock.tick(args.fps) / 1000.0

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_ESCAPE, pygame.K_q):
                    running = False
                elif event.key in MOVE_KEYS:
                    spawn(player.move(*MOVE_KEYS[event.key]))
                elif event.key in PROCEED_KEYS:
                    player.proceed()
                elif event.key == pygame.K_r:
                    log.info("Restart requested")
                    spawn(player.restart())

        player.update(dt)
        avatar = player.avatar if player.ready else None
        view.draw(avatar.id if avatar else None)
        pygame.display.flip()

        # Let pending moves and script delays make progress
        await asyncio.sleep(0)

    for task in pending:
        task.cancel()
    pygame.quit()
    return 0


def main() -> int:
    """Main entry point for the gridplay launcher."""
    parser = argparse.ArgumentParser(
        description='gridplay - play a grid game project',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python gridplay_game.py castle.yaml
  python gridplay_game.py castle.json --scale 24 --fps 60
        """
    )
    parser.add_argument(
        'project',
        help='Project file (.json, .yaml or .yml)'
    )
    parser.add_argument(
        '--scale',
        type=int,
        default=config.DISPLAY_SCALE,
        help=f'Pixels per cell (default: {config.DISPLAY_SCALE})'
    )
    parser.add_argument(
        '--fps',
        type=int,
        default=config.FPS,
        help=f'Frame rate (default: {config.FPS})'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=config.SHUFFLE_SEED,
        help='Seed for shuffled dialogue order'
    )
    args = parser.parse_args()

    try:
        project = load_project_file(args.project)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Cannot load project {args.project}: {e}")
        return 1

    player = Player(rng=random.Random(args.seed))
    return asyncio.run(play(args, player, project))


if __name__ == "__main__":
    sys.exit(main())
