# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
"""Modified UTF-7, as in RFC 3501 but with ``+`` as the shift character.

Printable US-ASCII other than ``+`` represents itself. Everything else is
written as ``+``, the UTF-16BE encoding in BASE64 (with ``,`` in place of
``/`` and no padding), then ``-``. A literal ``+`` is written ``+-``.
"""
import base64
import re
import string

from .commontypes import Utf7ImeError

SHIFT_MARKER = "+"
UNSHIFT_MARKER = "-"
MODIFIED_BASE64_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+,"

_SEXTETS = {character: value for value, character in enumerate(MODIFIED_BASE64_ALPHABET)}
# a shifted run ends at the first character outside the alphabet; "-" is consumed
RUN_MATCHER = re.compile(r"\+[A-Za-z0-9+,]*-?")


class MalformedEncoding(Utf7ImeError):
    def __init__(self, raw: str, reason: str):
        super().__init__(f"Malformed modified UTF-7 run {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason


def is_direct(character: str):
    "Whether the character is written as itself rather than inside a shifted run."
    return 0x20 <= ord(character) <= 0x7E and character != SHIFT_MARKER


def is_base64(character: str):
    return character in _SEXTETS


def _modified_base64(chars: list[str]):
    encoded = base64.b64encode("".join(chars).encode("utf-16-be")).decode("ascii")
    return encoded.rstrip("=").replace("/", ",")


def encode(text: str) -> str:
    encoded = []
    pending = []
    for character in text:
        if is_direct(character) or character == SHIFT_MARKER:
            if pending:
                encoded.append(SHIFT_MARKER + _modified_base64(pending) + UNSHIFT_MARKER)
                pending = []
            encoded.append(character if character != SHIFT_MARKER else SHIFT_MARKER + UNSHIFT_MARKER)
        else:
            pending.append(character)
    if pending:
        encoded.append(SHIFT_MARKER + _modified_base64(pending) + UNSHIFT_MARKER)
    return "".join(encoded)


def _unbase64(run: str, body: str) -> str:
    accumulator = 0
    bit_count = 0
    decoded = bytearray()
    for character in body:
        try:
            sextet = _SEXTETS[character]
        except KeyError:
            raise MalformedEncoding(run, f"{character!r} is not in the modified BASE64 alphabet") from None
        accumulator = (accumulator << 6) | sextet
        bit_count += 6
        if bit_count >= 8:
            bit_count -= 8
            decoded.append(accumulator >> bit_count)
            accumulator &= (1 << bit_count) - 1
    if bit_count >= 6:
        raise MalformedEncoding(run, "trailing BASE64 character carries no complete octet")
    if accumulator:
        raise MalformedEncoding(run, "non-zero padding bits")
    if len(decoded) % 2:
        raise MalformedEncoding(run, "incomplete UTF-16 code unit")
    try:
        return decoded.decode("utf-16-be")
    except UnicodeDecodeError as e:
        raise MalformedEncoding(run, "unpaired surrogate") from e


def decode_run(run: str) -> str:
    """Decodes one shifted run: the shift marker, the BASE64 body and, if the
    run was ended explicitly, the unshift marker.

    Raises MalformedEncoding if the body cannot be decoded.
    """
    if not run.startswith(SHIFT_MARKER):
        raise MalformedEncoding(run, "run does not begin with the shift marker")
    body = run[len(SHIFT_MARKER) :]
    terminated = body.endswith(UNSHIFT_MARKER)
    if terminated:
        body = body[: -len(UNSHIFT_MARKER)]
    if not body:
        return SHIFT_MARKER if terminated else ""
    return _unbase64(run, body)


def decode(encoded: str, errors: str = "strict") -> str:
    """Decodes a whole Modified UTF-7 string.

    With errors="verbatim", malformed runs are kept as their raw text instead
    of raising MalformedEncoding.
    """
    if errors not in ("strict", "verbatim"):
        raise ValueError(f"Unknown error handling {errors!r}")

    def replace(match: re.Match):
        run = match.group(0)
        # a run ended by any other character is closed as if "-" had been typed
        try:
            return decode_run(run if run.endswith(UNSHIFT_MARKER) else run + UNSHIFT_MARKER)
        except MalformedEncoding:
            if errors == "strict":
                raise
            return run

    return RUN_MATCHER.sub(replace, encoded)
