"""
Standard touch pipeline: what touching an event does when it has no script.

Steps run in a fixed order, each a no-op when its field is absent:

1. page color    text `page-color`      -> "page-color" notification
2. dialogue      dialogue `title`, then the next `say` line
3. exit          location `exit`        -> move the avatar there
4. remove        tag `one-time`         -> discard the touched event
5. ending        dialogue `ending`      -> show it, then restart from backup
6. misc          tile `set-avatar`      -> replace the avatar's `graphic`

Removal comes after dialogue and exit so both still see the event. A step
only starts once the previous one, and anything it awaited, has finished.
"""

from typing import Awaitable, Callable, List, TYPE_CHECKING

from gridplay.logging import get_logger
from gridplay.project import locate
from gridplay.project.schema import Event, FieldType

if TYPE_CHECKING:
    from gridplay.player import Player

log = get_logger('touch')

Step = Callable[[Event], Awaitable[None]]


class StandardTouch:
    """Runs the convention-based behaviour of an event for a player."""

    def __init__(self, player: 'Player'):
        self.player = player

    @property
    def steps(self) -> List[Step]:
        return [
            self.run_page_color,
            self.run_dialogue,
            self.run_exit,
            self.run_remove,
            self.run_ending,
            self.run_misc,
        ]

    async def run(self, event: Event) -> None:
        """Run every step for the event.

        A restart inside a step starts a new session in which this event no
        longer exists, so the remaining steps are skipped.
        """
        session = self.player.session
        for step in self.steps:
            if self.player.session != session:
                log.debug("Session restarted while touching event %s; stopping", event.id)
                return
            await step(event)

    async def run_page_color(self, event: Event) -> None:
        color = locate.field_data(event, 'page-color', FieldType.TEXT)
        if color is not None:
            self.player.channel.emit('page-color', color)

    async def run_dialogue(self, event: Event) -> None:
        title = locate.field_data(event, 'title', FieldType.DIALOGUE)
        if title is not None:
            self.player.title(title)
            await self.player.dialogue_waiter

        line = self.player.sequencer.next_line(event)
        if line is not None:
            style = locate.field_data(event, 'say-style', FieldType.JSON)
            self.player.say(line, style)

        await self.player.dialogue_waiter

    async def run_exit(self, event: Event) -> None:
        destination = locate.field_data(event, 'exit', FieldType.LOCATION)
        avatar = self.player.avatar
        if destination is not None and avatar is not None:
            log.debug("Event %s sends avatar to %s", event.id, destination)
            try:
                locate.relocate(self.player.data, avatar, destination)
            except (IndexError, ValueError) as exc:
                log.warning("Ignoring bad exit on event %s: %s", event.id, exc)

    async def run_remove(self, event: Event) -> None:
        if locate.is_tagged(event, 'one-time'):
            locate.discard(self.player.data, event)
            self.player.sequencer.forget(event.id)

    async def run_ending(self, event: Event) -> None:
        ending = locate.field_data(event, 'ending', FieldType.DIALOGUE)
        if ending is not None:
            self.player.title(ending)
            await self.player.dialogue_waiter
            log.info("Ending reached via event %s; restarting", event.id)
            await self.player.restart()

    async def run_misc(self, event: Event) -> None:
        tile = locate.field_data(event, 'set-avatar', FieldType.TILE)
        avatar = self.player.avatar
        if tile is not None and avatar is not None:
            locate.replace_fields(avatar, 'graphic', FieldType.TILE, tile)
