# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import logging
import typing

from ..commontypes import NoActiveSession
from ..device.hwtypes import KeyEvent, KeyPress
from ..device.keytranslator import KeyTranslator
from .shifting import CommitChar, CommitText, ComposingUpdate, FeedResult, PassThrough, Session, feed

if typing.TYPE_CHECKING:
    from ..settings import Settings

logger = logging.getLogger(__name__)


class TextInputHost(typing.Protocol):
    def commit_text(self, text: str) -> None: ...

    def set_composing_text(self, text: str) -> None: ...


class Utf7InputMethod:
    """Lets a hardware keyboard enter any Unicode text by typing its Modified UTF-7 encoding.

    The host calls the on_* methods; decoded text goes back out through the
    host's commit_text and set_composing_text.
    """

    session: typing.Optional[Session]
    translator: typing.Optional[KeyTranslator]

    def __init__(self, host: TextInputHost, settings: Settings):
        self.host = host
        self.settings = settings
        self.session = None
        self.translator = None

    def on_bind_start(self, restarting: bool):
        if self.session is None or not restarting:
            logger.debug("Starting input session")
            self.session = Session()
            self.translator = KeyTranslator.from_settings(self.settings, modifiers=self.session.modifiers)
        else:
            # the text field was restarted, so any composing text on it is gone
            self.session.abandon_composing()

    def on_finish(self):
        if self.session is not None:
            logger.debug("Finishing input session")
            self.session.abandon_composing()
        self.session = None
        self.translator = None

    def on_key_down(self, event: KeyEvent) -> bool:
        "Returns False if the host should handle the event itself."
        session, translator = self._active()
        code = translator.resolve(event.key, event.press, event.host_modifiers)
        if code is None:
            return False
        return self.apply(feed(session, code))

    def on_key_up(self, event: KeyEvent) -> bool:
        _, translator = self._active()
        translator.resolve(event.key, KeyPress.RELEASED, event.host_modifiers)
        return False

    def apply(self, results: collections.abc.Iterable[FeedResult]) -> bool:
        handled = False
        for result in results:
            match result:
                case PassThrough():
                    pass
                case CommitChar():
                    self.host.commit_text(result.text)
                    handled = True
                case ComposingUpdate(composing=composing):
                    self.host.set_composing_text(composing)
                    handled = True
                case CommitText(text=text):
                    self.host.commit_text(text)
                    handled = True
        return handled

    def _active(self) -> tuple[Session, KeyTranslator]:
        if self.session is None or self.translator is None:
            raise NoActiveSession()
        return self.session, self.translator
