"""
Dialogue sequencer: which `say` line an event shows on each touch.

An event's say-list is the data of its `say` dialogue fields, in order. The
`say-mode` text field picks the replay order:

- sequential (default): lines in order, then the last line forever
- cycle: lines in order, then start over
- shuffle: a random order per pass, reshuffled for every pass

Progress is kept in a side table keyed by event id, so it never touches the
project data and a restart only has to call reset().
"""

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from gridplay.logging import get_logger
from gridplay.project.locate import all_field_data, field_data
from gridplay.project.schema import Event, FieldType

log = get_logger('sequencer')

SEQUENTIAL = 'sequential'
CYCLE = 'cycle'
SHUFFLE = 'shuffle'


@dataclass
class SayProgress:
    """Captured order of lines and the index of the next one to show."""
    order: List[str] = field(default_factory=list)
    cursor: int = 0


class DialogueSequencer:
    """Picks the next say line per event."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self._progress: Dict[int, SayProgress] = {}

    @staticmethod
    def say_mode(event: Event) -> str:
        return field_data(event, 'say-mode', FieldType.TEXT) or SEQUENTIAL

    def progress(self, event_id: int) -> Optional[SayProgress]:
        return self._progress.get(event_id)

    def next_line(self, event: Event) -> Optional[str]:
        """Line to show for this touch, or None when the event has no says."""
        mode = self.say_mode(event)

        progress = self._progress.get(event.id)
        if progress is None:
            order = [str(line) for line in all_field_data(event, 'say', FieldType.DIALOGUE)]
            if mode == SHUFFLE:
                self.rng.shuffle(order)
            progress = SayProgress(order=order)
            self._progress[event.id] = progress

        if not progress.order:
            return None

        line = progress.order[progress.cursor]
        progress.cursor += 1

        if progress.cursor >= len(progress.order):
            if mode in (SHUFFLE, CYCLE):
                del self._progress[event.id]
            else:
                progress.cursor = len(progress.order) - 1

        log.debug("Event %s says line (%s): %r", event.id, mode, line)
        return line

    def forget(self, event_id: int) -> None:
        self._progress.pop(event_id, None)

    def reset(self) -> None:
        self._progress.clear()
