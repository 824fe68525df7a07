"""Minimal formatted output understanding %d, %u, %x, %p, %s and %%."""

from __future__ import annotations

import re
import sys
from typing import IO

__all__ = ["format_message", "fprintf", "printf"]

_DIGITS = "0123456789ABCDEF"
_DIRECTIVE = re.compile(r"%(ll[dux]|l[dux]|[dupsx%]|.)?", re.DOTALL)
_INTEGER = {
    "d": (10, True),
    "ld": (10, True),
    "lld": (10, True),
    "u": (10, False),
    "lu": (10, False),
    "llu": (10, False),
    "x": (16, False),
    "lx": (16, False),
    "llx": (16, False),
}
_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


def _render_int(value: int, base: int, signed: bool) -> str:
    # Integers are printed through a 32-bit int, whatever the length modifier.
    value = int(value) & _MASK32
    negative = bool(signed and value & 0x80000000)
    if negative:
        value = (-(value - (1 << 32))) & _MASK32
    digits = []
    while True:
        value, remainder = divmod(value, base)
        digits.append(_DIGITS[remainder])
        if value == 0:
            break
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def _render_pointer(value: int) -> str:
    return "0x" + format(int(value) & _MASK64, "016X")


def _render_string(value: object) -> str:
    if value is None:
        return "(null)"
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("latin-1")
    return str(value).split("\0", 1)[0]


def format_message(fmt: str, *args: object) -> str:
    """Expand ``fmt`` with ``args`` and return the resulting text.

    Unknown directives are copied through with their percent sign so they
    stand out; a lone trailing percent sign produces nothing.
    """
    values = iter(args)

    def take() -> object:
        try:
            return next(values)
        except StopIteration:
            raise TypeError("not enough arguments for format string") from None

    def expand(match: re.Match) -> str:
        spec = match.group(1)
        if spec is None:
            return ""
        if spec == "%":
            return "%"
        if spec in _INTEGER:
            base, signed = _INTEGER[spec]
            return _render_int(take(), base, signed)
        if spec == "p":
            return _render_pointer(take())
        if spec == "s":
            return _render_string(take())
        return "%" + spec

    return _DIRECTIVE.sub(expand, fmt)


def fprintf(stream: IO[str], fmt: str, *args: object) -> None:
    """Write the formatted text to ``stream``."""
    stream.write(format_message(fmt, *args))


def printf(fmt: str, *args: object) -> None:
    """Write the formatted text to standard output."""
    fprintf(sys.stdout, fmt, *args)