# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import enum
import logging
import time
import typing
import unicodedata

from .eventsource import KeyCode
from .hwtypes import KeyPress, ModifierAnnotation

if typing.TYPE_CHECKING:
    import collections.abc

    from ..settings import Settings

logger = logging.getLogger(__name__)


class Modifier(enum.Enum):
    SHIFT = enum.auto()
    ALT = enum.auto()
    CTRL = enum.auto()
    META = enum.auto()


class Latch(enum.Enum):
    OFF = enum.auto()
    # held down, no other key pressed yet
    PRESSED = enum.auto()
    # held down, applied to at least one key
    USED = enum.auto()
    # tapped; applies to the next key only
    STICKY = enum.auto()
    # tapped twice; applies until tapped again
    LOCKED = enum.auto()


MODIFIER_KEYS = {
    KeyCode.KEY_LEFTSHIFT: Modifier.SHIFT,
    KeyCode.KEY_RIGHTSHIFT: Modifier.SHIFT,
    KeyCode.KEY_LEFTALT: Modifier.ALT,
    KeyCode.KEY_RIGHTALT: Modifier.ALT,
    KeyCode.KEY_LEFTCTRL: Modifier.CTRL,
    KeyCode.KEY_RIGHTCTRL: Modifier.CTRL,
    KeyCode.KEY_LEFTMETA: Modifier.META,
    KeyCode.KEY_RIGHTMETA: Modifier.META,
}

# ctrl plus one of these yields the matching C0 control code
CONTROL_CHARACTERS = frozenset("@ABCDEFGHIJKLMNOPQRSTUVWXYZ[\\]^_")


class ModifierState:
    latches: dict[Modifier, Latch]
    tapped_at: dict[Modifier, float]

    def __init__(self):
        self.clear()

    def clear(self):
        self.latches = {modifier: Latch.OFF for modifier in Modifier}
        self.tapped_at = {}
        self.capslock = False

    def is_active(self, modifier: Modifier):
        return self.latches[modifier] is not Latch.OFF

    def annotation(self):
        return ModifierAnnotation(
            alt=self.is_active(Modifier.ALT),
            ctrl=self.is_active(Modifier.CTRL),
            meta=self.is_active(Modifier.META),
            shift=self.is_active(Modifier.SHIFT),
            capslock=self.capslock,
        )


class KeyTranslator:
    """Resolves key events into character codes, tracking modifiers between calls.

    With sticky modifiers, a modifier that is pressed and released on its own
    applies to the next key; tapping it twice locks it until it is tapped again.
    When ``lock_interval`` is set, the second tap must come within that many
    seconds of the first release to lock.
    """

    def __init__(
        self,
        keymaps: dict[KeyCode, list[str]],
        modifiers: typing.Optional[ModifierState] = None,
        sticky_modifiers: bool = True,
        lock_interval: typing.Optional[float] = None,
        clock: collections.abc.Callable[[], float] = time.monotonic,
    ):
        self.keymaps = keymaps
        self.modifiers = modifiers if modifiers is not None else ModifierState()
        self.sticky_modifiers = sticky_modifiers
        self.lock_interval = lock_interval
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, modifiers: typing.Optional[ModifierState] = None):
        return cls(
            settings.keymaps,
            modifiers=modifiers,
            sticky_modifiers=settings.sticky_modifiers,
            lock_interval=settings.modifier_lock_interval,
        )

    def resolve(
        self,
        key: KeyCode,
        press: KeyPress,
        host_modifiers: typing.Optional[ModifierAnnotation] = None,
    ) -> typing.Optional[int]:
        if press is KeyPress.RELEASED:
            self._handle_key_up(key)
            return None
        self._handle_key_down(key, press)
        if key in MODIFIER_KEYS or key is KeyCode.KEY_CAPSLOCK:
            return None
        annotation = self.modifiers.annotation()
        if host_modifiers is not None:
            annotation = annotation.merge(host_modifiers)
        code = self._character_for(key, annotation)
        self._adjust_after_keypress()
        return code

    def _handle_key_down(self, key: KeyCode, press: KeyPress):
        if key is KeyCode.KEY_CAPSLOCK:
            if press is KeyPress.PRESSED:
                self.modifiers.capslock = not self.modifiers.capslock
            return
        modifier = MODIFIER_KEYS.get(key)
        if modifier is None or press is KeyPress.REPEATED:
            return
        latches = self.modifiers.latches
        match latches[modifier]:
            case Latch.PRESSED | Latch.USED:
                pass
            case Latch.STICKY:
                if self._within_lock_interval(modifier):
                    logger.debug("Locking %s", modifier.name)
                    latches[modifier] = Latch.LOCKED
                else:
                    latches[modifier] = Latch.PRESSED
            case Latch.LOCKED:
                latches[modifier] = Latch.OFF
            case Latch.OFF:
                latches[modifier] = Latch.PRESSED

    def _handle_key_up(self, key: KeyCode):
        modifier = MODIFIER_KEYS.get(key)
        if modifier is None:
            return
        latches = self.modifiers.latches
        if latches[modifier] is Latch.USED:
            latches[modifier] = Latch.OFF
        elif latches[modifier] is Latch.PRESSED:
            if self.sticky_modifiers:
                latches[modifier] = Latch.STICKY
                self.modifiers.tapped_at[modifier] = self.clock()
            else:
                latches[modifier] = Latch.OFF

    def _within_lock_interval(self, modifier: Modifier):
        if self.lock_interval is None:
            return True
        tapped_at = self.modifiers.tapped_at.get(modifier)
        return tapped_at is not None and self.clock() - tapped_at <= self.lock_interval

    def _adjust_after_keypress(self):
        latches = self.modifiers.latches
        for modifier, latch in latches.items():
            if latch is Latch.PRESSED:
                latches[modifier] = Latch.USED
            elif latch is Latch.STICKY:
                latches[modifier] = Latch.OFF

    def _character_for(self, key: KeyCode, annotation: ModifierAnnotation) -> typing.Optional[int]:
        keymap = self.keymaps.get(key)
        if keymap is None or annotation.alt or annotation.meta:
            return None
        is_shifted = annotation.shift
        if unicodedata.category(keymap[0]).startswith("L"):
            is_shifted ^= annotation.capslock
        character = keymap[1 if is_shifted else 0]
        if annotation.ctrl:
            character = character.upper()
            if character not in CONTROL_CHARACTERS:
                return None
            return ord(character) & 0x1F
        return ord(character)
