# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import pytest
from utf7ime.commontypes import NoActiveSession
from utf7ime.device.eventsource import KeyCode
from utf7ime.device.hwtypes import KeyEvent, KeyPress
from utf7ime.device.keystreams import keystrokes_for_text
from utf7ime.ime.service import Utf7InputMethod
from utf7ime.ime.shifting import ShiftState
from utf7ime.settings import Settings


class RecordingHost:
    def __init__(self):
        self.calls = []

    def commit_text(self, text):
        self.calls.append(("commit", text))

    def set_composing_text(self, text):
        self.calls.append(("composing", text))

    @property
    def committed(self):
        return "".join(text for kind, text in self.calls if kind == "commit")


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture
def ime(host):
    ime = Utf7InputMethod(host, Settings.for_test())
    ime.on_bind_start(restarting=False)
    return ime


def deliver(ime, events):
    handled = []
    for event in events:
        if event.press is KeyPress.RELEASED:
            handled.append(ime.on_key_up(event))
        else:
            handled.append(ime.on_key_down(event))
    return handled


def type_text(ime, characters):
    return deliver(ime, keystrokes_for_text(characters, Settings.for_test().keymaps))


def type_ascii(ime, characters):
    "Types the characters as they are, without encoding them."
    levels = {}
    for key, keymap in Settings.for_test().keymaps.items():
        for level, character in enumerate(keymap):
            levels.setdefault(character, (key, level))
    events = []
    for character in characters:
        key, level = levels[character]
        if level:
            events.append(KeyEvent.pressed(KeyCode.KEY_LEFTSHIFT))
        events.extend([KeyEvent.pressed(key), KeyEvent.released(key)])
        if level:
            events.append(KeyEvent.released(KeyCode.KEY_LEFTSHIFT))
    return deliver(ime, events)


def test_typing_encoded_text(ime, host):
    deliver(ime, keystrokes_for_text("A☺B", Settings.for_test().keymaps))
    assert host.calls == [
        ("commit", "A"),
        ("composing", "+"),
        ("composing", "+J"),
        ("composing", "+Jj"),
        ("composing", "+Jjo"),
        ("commit", "☺"),
        ("commit", "B"),
    ]
    assert ime.session.shift_state is ShiftState.UNSHIFTED


@pytest.mark.parametrize("text", ["Grüße, 世界!", "1+1=2", "~peter/mail/台北/日本語", "😀"])
def test_typing_round_trip(ime, host, text):
    type_text(ime, text)
    assert host.committed == text


def test_key_handling_results(ime):
    events = [
        KeyEvent.pressed(KeyCode.KEY_LEFTSHIFT),
        KeyEvent.pressed(KeyCode.KEY_A),
        KeyEvent.released(KeyCode.KEY_A),
        KeyEvent.released(KeyCode.KEY_LEFTSHIFT),
        KeyEvent.pressed(KeyCode.KEY_ENTER),
        KeyEvent.released(KeyCode.KEY_ENTER),
        KeyEvent.pressed(KeyCode.KEY_BACKSPACE),
        KeyEvent.released(KeyCode.KEY_BACKSPACE),
    ]
    assert deliver(ime, events) == [False, True, False, False, False, False, False, False]


def test_enter_ends_a_shifted_run(ime, host):
    deliver(
        ime,
        [
            KeyEvent.pressed(KeyCode.KEY_LEFTSHIFT),
            KeyEvent.pressed(KeyCode.KEY_EQUAL),
            KeyEvent.released(KeyCode.KEY_EQUAL),
            KeyEvent.released(KeyCode.KEY_LEFTSHIFT),
            KeyEvent.pressed(KeyCode.KEY_A),
            KeyEvent.released(KeyCode.KEY_A),
        ],
    )
    # a single BASE64 character carries no whole octet, so the typed run is kept
    assert ime.on_key_down(KeyEvent.pressed(KeyCode.KEY_ENTER)) is True
    assert host.calls[-2:] == [("commit", "+a"), ("commit", "\n")]


def test_enter_decodes_a_shifted_run(ime, host):
    type_ascii(ime, "+aok")
    assert host.calls[-1] == ("composing", "+aok")
    assert ime.on_key_down(KeyEvent.pressed(KeyCode.KEY_ENTER)) is True
    assert host.calls[-2:] == [("commit", "\u6a89"), ("commit", "\n")]


def test_malformed_run_is_committed_verbatim(ime, host):
    type_text(ime, "x")
    deliver(
        ime,
        [
            KeyEvent.pressed(KeyCode.KEY_LEFTSHIFT),
            KeyEvent.pressed(KeyCode.KEY_EQUAL),
            KeyEvent.released(KeyCode.KEY_EQUAL),
            KeyEvent.released(KeyCode.KEY_LEFTSHIFT),
            KeyEvent.pressed(KeyCode.KEY_Q),
            KeyEvent.released(KeyCode.KEY_Q),
            KeyEvent.pressed(KeyCode.KEY_MINUS),
            KeyEvent.released(KeyCode.KEY_MINUS),
        ],
    )
    assert host.calls[-1] == ("commit", "+q-")
    assert host.committed == "x+q-"


def test_bind_start_resets(ime):
    deliver(
        ime,
        [
            KeyEvent.pressed(KeyCode.KEY_CAPSLOCK),
            KeyEvent.released(KeyCode.KEY_CAPSLOCK),
            KeyEvent.pressed(KeyCode.KEY_LEFTSHIFT),
            KeyEvent.pressed(KeyCode.KEY_EQUAL),
            KeyEvent.released(KeyCode.KEY_EQUAL),
            KeyEvent.released(KeyCode.KEY_LEFTSHIFT),
        ],
    )
    assert ime.session.shift_state is ShiftState.SHIFTED
    for _ in range(2):
        ime.on_bind_start(restarting=False)
        assert ime.session.shift_state is ShiftState.UNSHIFTED
        assert ime.session.composing is None
        assert not ime.session.modifiers.capslock


def test_restarting_keeps_modifiers(ime, host):
    deliver(
        ime,
        [
            KeyEvent.pressed(KeyCode.KEY_LEFTSHIFT),
            KeyEvent.pressed(KeyCode.KEY_EQUAL),
            KeyEvent.released(KeyCode.KEY_EQUAL),
            KeyEvent.released(KeyCode.KEY_LEFTSHIFT),
            KeyEvent.pressed(KeyCode.KEY_LEFTSHIFT),
            KeyEvent.released(KeyCode.KEY_LEFTSHIFT),
        ],
    )
    ime.on_bind_start(restarting=True)
    assert ime.session.shift_state is ShiftState.UNSHIFTED
    assert ime.session.composing is None
    # the sticky shift survives the restart
    type_text(ime, "a")
    assert host.calls[-1] == ("commit", "A")


def test_restarting_without_session_starts_one(host):
    ime = Utf7InputMethod(host, Settings.for_test())
    ime.on_bind_start(restarting=True)
    type_text(ime, "hi")
    assert host.committed == "hi"


def test_finish_is_idempotent(host):
    ime = Utf7InputMethod(host, Settings.for_test())
    ime.on_finish()
    ime.on_bind_start(restarting=False)
    ime.on_finish()
    ime.on_finish()
    assert ime.session is None


def test_key_events_need_a_session(host):
    ime = Utf7InputMethod(host, Settings.for_test())
    with pytest.raises(NoActiveSession):
        ime.on_key_down(KeyEvent.pressed(KeyCode.KEY_A))
    ime.on_bind_start(restarting=False)
    ime.on_finish()
    with pytest.raises(NoActiveSession):
        ime.on_key_up(KeyEvent.released(KeyCode.KEY_A))
    assert host.calls == []


def test_lone_shift_marker_is_kept(ime, host):
    type_ascii(ime, "+!!!- a+ b")
    assert host.committed == "+!!!- a+ b"
    assert ime.session.shift_state is ShiftState.UNSHIFTED
