"""
Player - plays a project: owns the avatar, the dialogue box, the touch
dispatch, and the game clock.

Lifecycle:
    uninitialized --start()--> ready
    uninitialized --start() without an is-player event--> error

`busy` is set for the whole of a move() call so moves never overlap.
Touches issued by scripts (TOUCH) are not covered by it.

Usage:
    player = Player()
    player.channel.subscribe('render', draw_frame)
    await player.load(project)          # runs the avatar's opening touch
    await player.move(1, 0)
    player.update(dt)                   # every frame
    player.proceed()                    # advance dialogue
"""

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from gridplay import config
from gridplay.channel import Channel
from gridplay.collision import MoveResult, resolve_move
from gridplay.dialogue import DialogueBox, DialoguePage, DialogueSequencer, DialogueWaiter
from gridplay.logging import get_logger
from gridplay.lua import ScriptSandbox, TouchAPI
from gridplay.project import locate
from gridplay.project.schema import SCRIPT_TYPES, Event, Palette, Project, Room
from gridplay.project.state import StateManager
from gridplay.touch import StandardTouch

log = get_logger('player')


class PlayerState(str, Enum):
    UNINITIALIZED = 'uninitialized'
    READY = 'ready'
    ERROR = 'error'


@dataclass
class RenderFrame:
    """What the front-end needs to draw one frame."""
    room: Optional[Room]
    palette: Optional[Palette]
    frame: int                          # tile animation frame (0 or 1)
    events: List[Event] = field(default_factory=list)
    dialogue: Optional[DialoguePage] = None
    dialogue_anchor: float = 1.0        # 0 = top, 0.5 = middle, 1 = bottom
    error: bool = False


class Player:
    """Runs a project: movement, touches, dialogue, restarts."""

    def __init__(self, rng: Optional[random.Random] = None):
        # Live project and the snapshot restart() returns to
        self.state_manager = StateManager()
        self.state_backup = StateManager()

        self.channel = Channel()
        self.dialogue = DialogueBox(self.channel)
        self.dialogue_waiter = DialogueWaiter(self.dialogue)
        self.sequencer = DialogueSequencer(rng or random.Random(config.SHUFFLE_SEED))

        self.sandbox = ScriptSandbox()
        self.api = TouchAPI(self, self.sandbox)
        self.pipeline = StandardTouch(self)

        self.time = 0.0
        self.frame_count = 0

        self.avatar_id: Optional[int] = None
        self.ready = False
        self.busy = False
        self.error = False
        # Bumped by clear(); touches from an older session stop early
        self.session = 0

    # =========================================================================
    # State
    # =========================================================================

    @property
    def data(self) -> Project:
        return self.state_manager.present

    @property
    def avatar(self) -> Optional[Event]:
        if self.avatar_id is None:
            return None
        return locate.event_by_id(self.data, self.avatar_id)

    @property
    def state(self) -> PlayerState:
        if self.error:
            return PlayerState.ERROR
        if self.ready:
            return PlayerState.READY
        return PlayerState.UNINITIALIZED

    def active_palette(self) -> Optional[Palette]:
        """Palette of the room the avatar is in."""
        avatar = self.avatar
        room = locate.room_of_event(self.data, avatar) if avatar else None
        if room is None or not 0 <= room.palette < len(self.data.palettes):
            return None
        return self.data.palettes[room.palette]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def load(self, project: Project, resources: Optional[Dict[str, Any]] = None) -> None:
        """Play a project from the beginning; it becomes the restart snapshot."""
        self.clear()
        self.state_manager.load(project, resources)
        self.backup()
        await self.start()

    def backup(self) -> None:
        self.state_backup.copy_from(self.state_manager)

    async def restart(self) -> None:
        self.clear()
        self.state_manager.copy_from(self.state_backup)
        await self.start()

    async def start(self) -> None:
        """Find the avatar, put it on top of its room, and run its touch."""
        avatar = next(
            (e for e in locate.all_events(self.data) if locate.is_tagged(e, 'is-player')),
            None,
        )
        if avatar is None:
            log.error("Cannot start: %s", config.MISSING_AVATAR_MESSAGE)
            self.show_error(config.MISSING_AVATAR_MESSAGE, fatal=True)
            return

        locate.relocate(self.data, avatar, locate.location_of_event(self.data, avatar))

        self.avatar_id = avatar.id
        self.ready = True
        log.info("Started with avatar event %s", avatar.id)

        # The game opens with the avatar's own touch behaviour
        await self.touch(avatar)

    def clear(self) -> None:
        self.ready = False
        self.error = False
        self.session += 1
        self.dialogue.clear()
        self.sequencer.reset()

    def update(self, dt: float) -> None:
        if not self.ready:
            return

        # Tile animation
        self.time += dt
        while self.time >= config.FRAME_DURATION:
            self.frame_count += 1
            self.time -= config.FRAME_DURATION

        self.dialogue.update(dt)
        self.render()

    # =========================================================================
    # Rendering signal
    # =========================================================================

    def make_frame(self, error: bool = False) -> RenderFrame:
        avatar = self.avatar
        room = locate.room_of_event(self.data, avatar) if avatar else None

        page = self.dialogue.current
        anchor = 1.0
        if avatar is not None and avatar.position[1] >= config.ROOM_SIZE // 2:
            anchor = 0.0
        if page is not None and 'anchorY' in page.options:
            try:
                anchor = float(page.options['anchorY'])
            except (TypeError, ValueError):
                log.warning("Ignoring anchorY %r", page.options['anchorY'])

        return RenderFrame(
            room=room,
            palette=self.active_palette(),
            frame=self.frame_count % 2,
            events=list(room.events) if room else [],
            dialogue=page,
            dialogue_anchor=anchor,
            error=error,
        )

    def render(self) -> None:
        self.channel.emit('render', self.make_frame())

    def show_error(self, text: str, fatal: bool = False) -> None:
        """Replace any dialogue with an error page, shown fully at once."""
        if fatal:
            self.error = True
            self.ready = False

        self.dialogue.clear()
        page = self.dialogue.queue(text, config.ERROR_STYLE)
        page.reveal_all()
        self.channel.emit('render', self.make_frame(error=True))

    # =========================================================================
    # Input
    # =========================================================================

    def proceed(self) -> None:
        if not self.ready:
            return
        self.dialogue.skip()

    async def move(self, dx: int, dy: int) -> Optional[MoveResult]:
        """Try to step the avatar and touch what it bumps into or stands on.

        Ignored (returns None) unless ready, no dialogue is showing and no
        other move is in flight. Also ignored once a script has removed the
        avatar.
        """
        if not self.ready or not self.dialogue.empty or self.busy:
            return None

        avatar = self.avatar
        if avatar is None:
            log.warning("Move ignored: avatar event %s is gone", self.avatar_id)
            return None

        self.busy = True
        try:
            room = locate.room_of_event(self.data, avatar)
            result = resolve_move(room, avatar, dx, dy)
            log.trace("Move (%d, %d) -> %s", dx, dy, result)

            if result.touched is not None:
                await self.touch(result.touched)
            return result
        finally:
            self.busy = False

    # =========================================================================
    # Touch dispatch
    # =========================================================================

    async def touch(self, event: Event) -> None:
        """Run the event's touch script if it has one, else the standard pipeline.

        Script failures never escape: they are logged and shown as an error
        page, and play continues once it is dismissed. A script still
        suspended when the game restarts is abandoned.
        """
        script = locate.first_field(event, 'touch', SCRIPT_TYPES)
        if script is None:
            await self.pipeline.run(event)
            return

        session = self.session
        log.lua_script(event.id)
        try:
            await self.sandbox.run(
                str(script.data),
                self.api.commands(event),
                self.api.fulfil,
                alive=lambda: self.session == session,
            )
        except Exception as exc:
            log.exception("Touch script of event %s failed: %s", event.id, exc)
            self.show_error(f"{config.SCRIPT_ERROR_PREFIX}{exc}")
        else:
            log.lua_script(event.id, action='finished')

    # =========================================================================
    # Dialogue
    # =========================================================================

    def say(self, text: str, options: Optional[Dict[str, Any]] = None) -> DialoguePage:
        return self.dialogue.queue(text, options)

    def title(self, text: str) -> DialoguePage:
        """Centered dialogue on the room's background color."""
        palette = self.active_palette()
        options: Dict[str, Any] = {'anchorY': 0.5}
        if palette:
            options['backgroundColor'] = palette[0]
        return self.say(text, options)
