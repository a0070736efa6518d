# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import abc
from contextlib import aclosing, asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterable, cast

import trio

from ..codec import encode
from ..ime.shifting import FeedResult, Session, feed
from .eventsource import KeyCode
from .hwtypes import KeyEvent, KeyPress, ResolvedKeyEvent
from .keytranslator import KeyTranslator

if TYPE_CHECKING:
    from ..settings import Settings


class Section(abc.ABC):
    @abc.abstractmethod
    async def pump(self, source: trio.MemoryReceiveChannel[Any], sink: trio.MemorySendChannel[Any]): ...


# stages 1 and 2: track modifiers and resolve key-downs into character codes
class ResolveCharacters(Section):
    def __init__(self, translator: KeyTranslator):
        self.translator = translator

    async def pump(self, source: trio.MemoryReceiveChannel[KeyEvent], sink: trio.MemorySendChannel[ResolvedKeyEvent]):
        async with aclosing(source), aclosing(sink):
            async for event in source:
                code = self.translator.resolve(event.key, event.press, event.host_modifiers)
                if event.press is not KeyPress.RELEASED:
                    await sink.send(ResolvedKeyEvent(key=event.key, press=event.press, code=code))


# stage 3: shift-state decoding; key-downs with no character are dropped
class DecodeShifts(Section):
    def __init__(self, session: Session):
        self.session = session

    async def pump(self, source: trio.MemoryReceiveChannel[ResolvedKeyEvent], sink: trio.MemorySendChannel[FeedResult]):
        async with aclosing(source), aclosing(sink):
            async for event in source:
                if event.code is None:
                    continue
                for result in feed(self.session, event.code):
                    await sink.send(result)


@asynccontextmanager
async def pump_all(first_source: AsyncIterable[Any], *sections: Section):
    async with trio.open_nursery() as nursery:
        section_input = first_source
        for section in sections:
            section_send_channel, section_receive_channel = trio.open_memory_channel(0)
            nursery.start_soon(section.pump, section_input, section_send_channel)
            section_input = section_receive_channel
        yield section_input
        nursery.cancel_scope.cancel()


@asynccontextmanager
async def make_textstream(
    key_event_channel: trio.MemoryReceiveChannel[KeyEvent],
    settings: Settings,
):
    session = Session()
    sections = [
        ResolveCharacters(KeyTranslator.from_settings(settings, modifiers=session.modifiers)),
        DecodeShifts(session),
    ]

    async with pump_all(key_event_channel, *sections) as textstream:
        yield cast(trio.MemoryReceiveChannel[FeedResult], textstream)


def keystrokes_for_text(text: str, keymaps: dict[KeyCode, list[str]]) -> list[KeyEvent]:
    """The key events that type the Modified UTF-7 encoding of text, holding
    left shift for characters on the shifted level."""
    levels = {}
    for key, characters in keymaps.items():
        for level, character in enumerate(characters[:2]):
            levels.setdefault(character, (key, level))
    events = []
    for character in encode(text):
        try:
            key, level = levels[character]
        except KeyError:
            raise ValueError(f"No key types {character!r}") from None
        if level:
            events.append(KeyEvent.pressed(KeyCode.KEY_LEFTSHIFT))
        events.extend([KeyEvent.pressed(key), KeyEvent.released(key)])
        if level:
            events.append(KeyEvent.released(KeyCode.KEY_LEFTSHIFT))
    return events
