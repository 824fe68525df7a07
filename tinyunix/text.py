"""cat, echo and wc."""

from __future__ import annotations

import sys
from typing import IO

__all__ = ["cat", "echo", "wc", "cat_main", "echo_main", "wc_main"]

_WHITESPACE = " \r\t\n\v"


def cat(stream: IO[str], out: IO[str]) -> None:
    """Copy ``stream`` to ``out``."""
    while chunk := stream.read(512):
        out.write(chunk)


def echo(args: list[str]) -> str:
    """The arguments joined by spaces and ended with a newline; empty for none."""
    return " ".join(args) + "\n" if args else ""


def wc(stream: IO[str]) -> tuple[int, int, int]:
    """Count lines, words and characters."""
    lines = words = chars = 0
    inword = False
    while chunk := stream.read(512):
        for ch in chunk:
            chars += 1
            if ch == "\n":
                lines += 1
            if ch in _WHITESPACE:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return lines, words, chars


def _open(name: str) -> IO[str]:
    return open(name, encoding="utf-8", errors="replace", newline="")


def cat_main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        cat(sys.stdin, sys.stdout)
        return 0
    for name in args:
        try:
            f = _open(name)
        except OSError:
            sys.stderr.write(f"cat: cannot open {name}\n")
            return 1
        with f:
            cat(f, sys.stdout)
    return 0


def echo_main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    sys.stdout.write(echo(args))
    return 0


def wc_main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        lines, words, chars = wc(sys.stdin)
        sys.stdout.write(f"{lines} {words} {chars} \n")
        return 0
    for name in args:
        try:
            f = _open(name)
        except OSError:
            sys.stdout.write(f"wc: cannot open {name}\n")
            return 1
        with f:
            lines, words, chars = wc(f)
        sys.stdout.write(f"{lines} {words} {chars} {name}\n")
    return 0