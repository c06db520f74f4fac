"""
Dialogue: the page queue, the awaitable that waits for it to drain, and the
per-event say-line sequencer.
"""

from gridplay.dialogue.box import DialogueBox, DialoguePage, parse_markup, strip_tags
from gridplay.dialogue.sequencer import DialogueSequencer, SayProgress
from gridplay.dialogue.waiter import DialogueWaiter

__all__ = [
    'DialogueBox', 'DialoguePage', 'parse_markup', 'strip_tags',
    'DialogueSequencer', 'SayProgress', 'DialogueWaiter',
]
