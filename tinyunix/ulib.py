"""Small string and input helpers used by the user programs."""

from __future__ import annotations

from typing import IO, AnyStr

__all__ = ["atoi", "gets", "strcmp"]

_LINE_ENDS = ("\n", "\r", b"\n", b"\r")


def atoi(text: str) -> int:
    """Return the value of the leading decimal digits of ``text``, or 0."""
    value = 0
    for ch in text:
        if not "0" <= ch <= "9":
            break
        value = value * 10 + (ord(ch) - ord("0"))
    return value


def gets(stream: IO[AnyStr], limit: int) -> AnyStr:
    """Read one line, keeping its terminator, of at most ``limit - 1`` characters.

    Reading stops after a newline or carriage return, at end of input, or
    once ``limit - 1`` characters have been read.  Works for text and
    binary streams alike.
    """
    empty = stream.read(0)
    pieces = []
    while len(pieces) + 1 < limit:
        ch = stream.read(1)
        if not ch:
            break
        pieces.append(ch)
        if ch in _LINE_ENDS:
            break
    return empty.join(pieces)


def _as_cstring(value: str | bytes) -> bytes:
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    return raw.split(b"\0", 1)[0]


def strcmp(a: str | bytes, b: str | bytes) -> int:
    """Compare two strings byte by byte.

    Returns 0 when equal, otherwise the difference between the first pair
    of differing bytes, taken as unsigned values.  A NUL ends a string.
    """
    left, right = _as_cstring(a), _as_cstring(b)
    for x, y in zip(left, right):
        if x != y:
            return x - y
    if len(left) > len(right):
        return left[len(right)]
    if len(right) > len(left):
        return -right[len(left)]
    return 0