# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import pytest
from utf7ime.codec import MalformedEncoding, decode, decode_run, encode


@pytest.mark.parametrize(
    "text,expected",
    [
        ("hello, world", "hello, world"),
        ("A☺B", "A+Jjo-B"),
        ("é", "+AOk-"),
        ("+", "+-"),
        ("a+b", "a+-b"),
        ("&", "&"),
        ("\n", "+AAo-"),
        ("😀", "+2D3eAA-"),
        ("台北", "+U,BTFw-"),
        ("~peter/mail/台北/日本語", "~peter/mail/+U,BTFw-/+ZeVnLIqe-"),
    ],
)
def test_encode(text, expected):
    assert encode(text) == expected


@pytest.mark.parametrize(
    "run,expected",
    [
        ("+Jjo-", "☺"),
        ("+Jjo", "☺"),
        ("+-", "+"),
        ("+", ""),
        ("+U,BTFw-", "台北"),
        ("+2D3eAA-", "😀"),
        ("+AAA-", "\x00"),
    ],
)
def test_decode_run(run, expected):
    assert decode_run(run) == expected


@pytest.mark.parametrize(
    "run,reason",
    [
        ("+!!!-", "'!' is not in the modified BASE64 alphabet"),
        ("+Jj/-", "'/' is not in the modified BASE64 alphabet"),
        ("+A-", "trailing BASE64 character carries no complete octet"),
        ("+AB-", "non-zero padding bits"),
        ("+AAAA-", "incomplete UTF-16 code unit"),
        ("+2D0-", "unpaired surrogate"),
        ("Jjo-", "run does not begin with the shift marker"),
    ],
)
def test_decode_run_malformed(run, reason):
    with pytest.raises(MalformedEncoding) as excinfo:
        decode_run(run)
    assert excinfo.value.raw == run
    assert excinfo.value.reason == reason


def test_decode():
    assert decode("~peter/mail/+U,BTFw-/+ZeVnLIqe-") == "~peter/mail/台北/日本語"
    # a run also ends at the first character outside the alphabet
    assert decode("+Jjo hi") == "☺ hi"
    assert decode("1+-1=2") == "1+1=2"
    assert decode("+ x +") == "+ x +"
    assert decode("ok +A x", errors="verbatim") == "ok +A x"


def test_decode_malformed():
    with pytest.raises(MalformedEncoding):
        decode("ok +A- ok")
    assert decode("ok +A- ok +Jjo-", errors="verbatim") == "ok +A- ok ☺"
    with pytest.raises(ValueError):
        decode("ok", errors="ignore")


@pytest.mark.parametrize("text", ["", "plain ascii", "Grüße, 世界!", "+-+-", "a\tb\nc", "😀😀 x 😀"])
def test_decode_reverses_encode(text):
    assert decode(encode(text)) == text
