from __future__ import annotations

import enum
import typing

import msgspec

if typing.TYPE_CHECKING:
    from .eventsource import KeyCode


class KeyPress(enum.IntEnum):
    RELEASED = 0
    PRESSED = 1
    REPEATED = 2


class ModifierAnnotation(msgspec.Struct, frozen=True):
    alt: bool = False
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    capslock: bool = False

    def merge(self, other: ModifierAnnotation):
        return ModifierAnnotation(
            alt=self.alt or other.alt,
            ctrl=self.ctrl or other.ctrl,
            meta=self.meta or other.meta,
            shift=self.shift or other.shift,
            capslock=self.capslock or other.capslock,
        )


class KeyEvent(msgspec.Struct, frozen=True):
    key: KeyCode
    press: KeyPress
    # modifier state as reported by the host alongside the event
    host_modifiers: ModifierAnnotation = msgspec.field(default_factory=ModifierAnnotation)

    @classmethod
    def pressed(cls, key: KeyCode):
        return cls(key=key, press=KeyPress.PRESSED)

    @classmethod
    def released(cls, key: KeyCode):
        return cls(key=key, press=KeyPress.RELEASED)


class ResolvedKeyEvent(msgspec.Struct, frozen=True):
    key: KeyCode
    press: KeyPress
    code: typing.Optional[int] = None
