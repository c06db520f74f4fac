"""
Dialogue box: the queue of pages the player reads through.

Layout and drawing belong to the front-end. This box only tracks which page
is showing, how many of its glyphs are revealed (typewriter effect), and
emits "empty" on its channel when the last page is dismissed or cleared.

Emphasis markup is resolved when a page is queued:

    ##shaking##   -> {+shk}shaking{-shk}
    ~~wavy~~      -> {+wvy}wavy{-wvy}
    ==rainbow==   -> {+rbw}rainbow{-rbw}
    __colored__   -> {+r}colored{-r}
"""

import re
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Optional

from gridplay import config
from gridplay.channel import Channel
from gridplay.logging import get_logger

log = get_logger('dialogue')

_MARKUP = (
    ('##', 'shk'),
    ('~~', 'wvy'),
    ('==', 'rbw'),
    ('__', 'r'),
)
_STYLE_TAG = re.compile(r'\{[^{}]*\}')


def _markup_to_tag(text: str, marker: str, tag: str) -> str:
    m = re.escape(marker)
    first = re.escape(marker[0])
    pattern = re.compile(f'{m}([^{first}]+){m}')
    return pattern.sub(lambda match: f'{{+{tag}}}{match.group(1)}{{-{tag}}}', text)


def parse_markup(text: str) -> str:
    """Resolve emphasis markup into begin/end style tags."""
    for marker, tag in _MARKUP:
        text = _markup_to_tag(text, marker, tag)
    return text


def strip_tags(text: str) -> str:
    """Visible glyphs of a page: the text with style tags removed."""
    return _STYLE_TAG.sub('', text)


@dataclass
class DialoguePage:
    """One queued page of dialogue."""
    text: str
    options: Dict[str, Any] = field(default_factory=dict)
    revealed: int = 0
    _elapsed: float = field(default=0.0, repr=False)

    @property
    def glyphs(self) -> str:
        return strip_tags(self.text)

    @property
    def complete(self) -> bool:
        return self.revealed >= len(self.glyphs)

    @property
    def reveal_delay(self) -> float:
        return float(self.options.get('glyphRevealDelay', config.GLYPH_REVEAL_DELAY))

    @property
    def visible_text(self) -> str:
        return self.glyphs[:self.revealed]

    def reveal_all(self) -> None:
        self.revealed = len(self.glyphs)

    def advance(self, dt: float) -> None:
        if self.complete:
            return
        delay = self.reveal_delay
        if delay <= 0:
            self.reveal_all()
            return
        self._elapsed += dt
        steps = int(self._elapsed // delay)
        if steps:
            self._elapsed -= steps * delay
            self.revealed = min(len(self.glyphs), self.revealed + steps)


class DialogueBox:
    """Queue of dialogue pages with skip/clear and an "empty" notification."""

    def __init__(self, channel: Optional[Channel] = None):
        self.channel = channel or Channel()
        self._pages: Deque[DialoguePage] = deque()

    @property
    def empty(self) -> bool:
        return not self._pages

    @property
    def current(self) -> Optional[DialoguePage]:
        return self._pages[0] if self._pages else None

    def __len__(self) -> int:
        return len(self._pages)

    def queue(self, text: str, options: Optional[Dict[str, Any]] = None) -> DialoguePage:
        """Append a page. Options are stored as given for the front-end."""
        page = DialoguePage(text=parse_markup(str(text)), options=dict(options or {}))
        if page.reveal_delay <= 0:
            page.reveal_all()
        self._pages.append(page)
        log.debug("Queued page (%d pending): %r", len(self._pages), page.glyphs)
        return page

    def update(self, dt: float) -> None:
        if self._pages:
            self._pages[0].advance(dt)

    def skip(self) -> None:
        """Reveal the current page fully, or dismiss it if already revealed."""
        page = self.current
        if page is None:
            return
        if not page.complete:
            page.reveal_all()
            return
        self._pages.popleft()
        if not self._pages:
            self.channel.emit('empty')

    def clear(self) -> None:
        had_pages = bool(self._pages)
        self._pages.clear()
        if had_pages:
            self.channel.emit('empty')
