"""Tests for the dialogue box, its waiter, and the notification channel."""

import asyncio

import pytest

from gridplay.channel import Channel
from gridplay.dialogue import DialogueBox, DialogueWaiter, parse_markup, strip_tags


class TestMarkup:

    @pytest.mark.parametrize("text,expected", [
        ('##shake##', '{+shk}shake{-shk}'),
        ('~~wave~~', '{+wvy}wave{-wvy}'),
        ('==rainbow==', '{+rbw}rainbow{-rbw}'),
        ('__red__', '{+r}red{-r}'),
        ('plain text', 'plain text'),
    ])
    def test_parse_markup(self, text, expected):
        assert parse_markup(text) == expected

    def test_mixed_markup(self):
        text = parse_markup('a ##b## c ==d==')
        assert text == 'a {+shk}b{-shk} c {+rbw}d{-rbw}'
        assert strip_tags(text) == 'a b c d'


class TestDialogueBox:

    @pytest.fixture
    def box(self):
        return DialogueBox()

    def test_starts_empty(self, box):
        assert box.empty
        assert box.current is None

    def test_queue_keeps_options(self, box):
        page = box.queue('hello', {'anchorY': 0.5, 'textColor': '#FF0000'})
        assert not box.empty
        assert box.current is page
        assert page.options == {'anchorY': 0.5, 'textColor': '#FF0000'}

    def test_glyphs_reveal_over_time(self, box):
        page = box.queue('abcd', {'glyphRevealDelay': 0.1})
        box.update(0.25)
        assert page.visible_text == 'ab'
        box.update(0.1)
        assert page.visible_text == 'abc'
        box.update(1.0)
        assert page.complete

    def test_zero_delay_reveals_at_once(self, box):
        page = box.queue('abcd', {'glyphRevealDelay': 0})
        assert page.complete

    def test_skip_reveals_then_dismisses(self, box):
        box.queue('one', {'glyphRevealDelay': 0.1})
        box.queue('two')

        box.skip()
        assert box.current.text == 'one'
        assert box.current.complete

        box.skip()
        assert box.current.text == 'two'

    def test_empty_emitted_when_last_page_dismissed(self, box):
        emitted = []
        box.channel.subscribe('empty', lambda: emitted.append(True))

        box.queue('one', {'glyphRevealDelay': 0})
        box.queue('two', {'glyphRevealDelay': 0})
        box.skip()
        assert emitted == []
        box.skip()
        assert emitted == [True]
        assert box.empty

    def test_clear_emits_only_when_pages_dropped(self, box):
        emitted = []
        box.channel.subscribe('empty', lambda: emitted.append(True))

        box.clear()
        assert emitted == []

        box.queue('one')
        box.clear()
        assert emitted == [True]
        assert box.empty

    def test_skip_on_empty_box_is_noop(self, box):
        box.skip()
        assert box.empty


class TestDialogueWaiter:

    def test_resolves_immediately_when_empty(self):
        box = DialogueBox()
        waiter = DialogueWaiter(box)

        async def scenario():
            await waiter
            return box.channel.subscriber_count('empty')

        assert asyncio.run(scenario()) == 0

    def test_suspends_until_box_drains(self):
        box = DialogueBox()
        waiter = DialogueWaiter(box)
        box.queue('hello', {'glyphRevealDelay': 0})

        async def scenario():
            task = asyncio.ensure_future(_wait(waiter))
            await asyncio.sleep(0)
            assert not task.done()

            box.skip()
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            return task.done()

        assert asyncio.run(scenario())

    def test_is_reusable(self):
        box = DialogueBox()
        waiter = DialogueWaiter(box)

        async def scenario():
            for text in ('one', 'two'):
                box.queue(text, {'glyphRevealDelay': 0})
                task = asyncio.ensure_future(_wait(waiter))
                await asyncio.sleep(0)
                assert not task.done()
                box.clear()
                await task
            return True

        assert asyncio.run(scenario())

    def test_many_waiters_resolve_together(self):
        box = DialogueBox()
        waiter = DialogueWaiter(box)
        box.queue('hello')

        async def scenario():
            tasks = [asyncio.ensure_future(_wait(waiter)) for _ in range(3)]
            await asyncio.sleep(0)
            box.clear()
            await asyncio.gather(*tasks)
            return all(t.done() for t in tasks)

        assert asyncio.run(scenario())


async def _wait(waiter):
    await waiter


class TestChannel:

    def test_subscribe_and_emit(self):
        channel = Channel()
        got = []
        channel.subscribe('render', got.append)

        channel.emit('render', 1)
        channel.emit('render', 2)
        channel.emit('other', 3)

        assert got == [1, 2]

    def test_once_fires_one_time(self):
        channel = Channel()
        got = []
        channel.once('empty', lambda: got.append('x'))

        channel.emit('empty')
        channel.emit('empty')

        assert got == ['x']
        assert channel.subscriber_count('empty') == 0

    def test_unsubscribe(self):
        channel = Channel()
        got = []
        channel.subscribe('render', got.append)
        channel.unsubscribe('render', got.append)

        channel.emit('render', 1)

        assert got == []

    def test_failing_handler_is_isolated(self):
        channel = Channel()
        got = []

        def broken(value):
            raise RuntimeError('boom')

        channel.subscribe('render', broken)
        channel.subscribe('render', got.append)

        channel.emit('render', 1)

        assert got == [1]
