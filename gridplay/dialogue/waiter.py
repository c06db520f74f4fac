"""Awaitable that resolves once the dialogue box has no pages left."""

import asyncio
from typing import Generator

from .box import DialogueBox


class DialogueWaiter:
    """Reusable: every `await waiter` checks the box afresh.

    Resolves without suspending when the box is already empty; otherwise
    suspends until the box emits "empty".
    """

    def __init__(self, box: DialogueBox):
        self._box = box

    def __await__(self) -> Generator:
        if self._box.empty:
            return None

        future = asyncio.get_running_loop().create_future()

        def _resolve() -> None:
            if not future.done():
                future.set_result(None)

        self._box.channel.once('empty', _resolve)
        return (yield from future.__await__())
