"""Simple grep supporting only the ^ . * $ operators."""

from __future__ import annotations

import sys
from typing import IO

__all__ = ["match", "grep", "main"]


def _matchhere(re: str, text: str) -> bool:
    if not re:
        return True
    if len(re) > 1 and re[1] == "*":
        return _matchstar(re[0], re[2:], text)
    if re == "$":
        return not text
    if text and (re[0] == "." or re[0] == text[0]):
        return _matchhere(re[1:], text[1:])
    return False


def _matchstar(c: str, re: str, text: str) -> bool:
    i = 0
    while True:
        if _matchhere(re, text[i:]):
            return True
        if i < len(text) and (text[i] == c or c == "."):
            i += 1
        else:
            return False


def match(pattern: str, text: str) -> bool:
    """Whether ``pattern`` matches anywhere in ``text``."""
    if pattern.startswith("^"):
        return _matchhere(pattern[1:], text)
    return any(_matchhere(pattern, text[i:]) for i in range(len(text) + 1))


def grep(pattern: str, stream: IO[str], out: IO[str]) -> None:
    """Copy to ``out`` every newline-terminated line of ``stream`` that matches."""
    for line in stream:
        if line.endswith("\n") and match(pattern, line[:-1]):
            out.write(line)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("usage: grep pattern [file ...]\n")
        return 1
    pattern = args[0]
    if len(args) == 1:
        grep(pattern, sys.stdin, sys.stdout)
        return 0
    for name in args[1:]:
        try:
            with open(name, encoding="utf-8", errors="replace", newline="") as f:
                grep(pattern, f, sys.stdout)
        except OSError:
            sys.stdout.write(f"grep: cannot open {name}\n")
            return 1
    return 0