from __future__ import annotations

import enum
import logging
import typing

import msgspec

from ..codec import SHIFT_MARKER, UNSHIFT_MARKER, MalformedEncoding, decode_run, is_base64
from ..device.keytranslator import ModifierState

logger = logging.getLogger(__name__)

SHIFT_CODE = ord(SHIFT_MARKER)
UNSHIFT_CODE = ord(UNSHIFT_MARKER)


class ShiftState(enum.Enum):
    UNSHIFTED = enum.auto()
    SHIFTED = enum.auto()


class PassThrough(msgspec.Struct, frozen=True):
    pass


class CommitChar(msgspec.Struct, frozen=True):
    code: int

    @property
    def text(self):
        return chr(self.code)


class ComposingUpdate(msgspec.Struct, frozen=True):
    composing: str


class CommitText(msgspec.Struct, frozen=True):
    text: str
    # the run could not be decoded, so text is the raw run
    malformed: bool = False


FeedResult = PassThrough | CommitChar | ComposingUpdate | CommitText


def is_ascii_printable(code: int):
    return 0x20 <= code <= 0x7E


class Session:
    shift_state: ShiftState
    composing: typing.Optional[list[str]]
    modifiers: ModifierState

    def __init__(self):
        self.modifiers = ModifierState()
        self.reset()

    def reset(self):
        self.shift_state = ShiftState.UNSHIFTED
        self.composing = None
        self.modifiers.clear()

    def abandon_composing(self):
        if self.composing is not None:
            logger.debug("Abandoning composing run %r", self.composing_text)
        self.shift_state = ShiftState.UNSHIFTED
        self.composing = None

    @property
    def composing_text(self):
        if self.composing is None:
            return ""
        return "".join(self.composing)


def _shift(session: Session) -> ComposingUpdate:
    session.shift_state = ShiftState.SHIFTED
    session.composing = [SHIFT_MARKER]
    return ComposingUpdate(composing=SHIFT_MARKER)


def _unshift(session: Session, implicit: bool = False) -> CommitText:
    if implicit:
        session.composing.append(UNSHIFT_MARKER)
    run = session.composing_text
    logger.debug("Unshifting; decoding run %r", run)
    session.shift_state = ShiftState.UNSHIFTED
    session.composing = None
    try:
        return CommitText(text=decode_run(run))
    except MalformedEncoding as e:
        logger.warning("%s; committing it verbatim", e)
        # the marker closing an implicit unshift was never typed
        typed = run[: -len(UNSHIFT_MARKER)] if implicit else run
        return CommitText(text=typed, malformed=True)


def feed(session: Session, code: int) -> tuple[FeedResult, ...]:
    """Feeds one character code through the shift-state machine.

    Returns the actions for the host, in order. Only an implicit unshift (a
    character outside the BASE64 alphabet ending a shifted run) yields two:
    the decoded run, then the character itself. The run is closed with the
    unshift marker either way, so a lone shift marker still decodes to "+".
    """
    if session.shift_state is ShiftState.UNSHIFTED:
        if code == SHIFT_CODE:
            return (_shift(session),)
        if is_ascii_printable(code):
            return (CommitChar(code=code),)
        return (PassThrough(),)

    assert session.composing is not None, "shifted without a composing buffer"
    if code == UNSHIFT_CODE:
        session.composing.append(UNSHIFT_MARKER)
        return (_unshift(session),)
    if code < 0x80 and is_base64(chr(code)):
        session.composing.append(chr(code))
        return (ComposingUpdate(composing=session.composing_text),)
    return (_unshift(session, implicit=True), CommitChar(code=code))
