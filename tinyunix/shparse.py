"""Tokenizer and parser for the shell's command language.

The grammar understands words, ``<``, ``>`` and ``>>`` redirections,
``|`` pipelines, ``;`` sequences, ``&`` background jobs and
parenthesised blocks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union

from tinyunix.fileinfo import OpenFlags

__all__ = [
    "MAXARGS",
    "ShellSyntaxError",
    "ExecCmd",
    "RedirCmd",
    "PipeCmd",
    "ListCmd",
    "BackCmd",
    "Command",
    "tokenize",
    "parse_command",
]

MAXARGS = 10

_WHITESPACE = " \t\r\n\v"
_SYMBOLS = "<|>&;()"
_REDIRECTS = frozenset({"<", ">", ">>"})


class ShellSyntaxError(ValueError):
    """A command line could not be parsed.

    ``leftovers`` holds the unparsed tail of the line when parsing stopped
    before its end.
    """

    def __init__(self, message: str, leftovers: str | None = None) -> None:
        super().__init__(message)
        self.leftovers = leftovers


@dataclass(frozen=True)
class ExecCmd:
    """Run a program with arguments; ``argv[0]`` names the program."""

    argv: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "argv", tuple(self.argv))


@dataclass(frozen=True)
class RedirCmd:
    """Run ``cmd`` with descriptor ``fd`` replaced by ``file`` opened with ``mode``."""

    cmd: "Command"
    file: str
    mode: OpenFlags
    fd: int


@dataclass(frozen=True)
class PipeCmd:
    """Feed the output of ``left`` into the input of ``right``."""

    left: "Command"
    right: "Command"


@dataclass(frozen=True)
class ListCmd:
    """Run ``left`` to completion, then ``right``."""

    left: "Command"
    right: "Command"


@dataclass(frozen=True)
class BackCmd:
    """Run ``cmd`` without waiting for it."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]


def _scan(line: str) -> Iterator[tuple[str, str, int]]:
    """Yield (kind, text, start offset) for each token of ``line``."""
    i, n = 0, len(line)
    while True:
        while i < n and line[i] in _WHITESPACE:
            i += 1
        if i >= n:
            return
        start = i
        c = line[i]
        if c == ">":
            if i + 1 < n and line[i + 1] == ">":
                yield ">>", ">>", start
                i += 2
            else:
                yield ">", ">", start
                i += 1
        elif c in _SYMBOLS:
            yield c, c, start
            i += 1
        else:
            while i < n and line[i] not in _WHITESPACE and line[i] not in _SYMBOLS:
                i += 1
            yield "word", line[start:i], start


def _cstring(line: str) -> str:
    return line.split("\0", 1)[0]


def tokenize(line: str) -> list[tuple[str, str]]:
    """Split ``line`` into (kind, text) tokens.

    ``kind`` is ``"word"`` for a word, otherwise the operator itself:
    one of ``| ( ) ; & < > >>``.
    """
    return [(kind, text) for kind, text, _ in _scan(_cstring(line))]


class _Parser:
    def __init__(self, line: str) -> None:
        self.line = line
        self.tokens = list(_scan(line))
        self.pos = 0

    def peek(self, kinds: set[str] | frozenset[str]) -> bool:
        return self.pos < len(self.tokens) and self.tokens[self.pos][0] in kinds

    def take(self) -> tuple[str, str] | None:
        if self.pos >= len(self.tokens):
            return None
        kind, text, _ = self.tokens[self.pos]
        self.pos += 1
        return kind, text

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def rest(self) -> str:
        return self.line[self.tokens[self.pos][2]:]

    def parse_line(self) -> Command:
        cmd = self.parse_pipe()
        while self.peek({"&"}):
            self.take()
            cmd = BackCmd(cmd)
        if self.peek({";"}):
            self.take()
            cmd = ListCmd(cmd, self.parse_line())
        return cmd

    def parse_pipe(self) -> Command:
        cmd = self.parse_exec()
        if self.peek({"|"}):
            self.take()
            cmd = PipeCmd(cmd, self.parse_pipe())
        return cmd

    def parse_redirs(self) -> list[tuple[str, str]]:
        redirs = []
        while self.peek(_REDIRECTS):
            kind, _ = self.take()
            target = self.take()
            if target is None or target[0] != "word":
                raise ShellSyntaxError("missing file for redirection")
            redirs.append((kind, target[1]))
        return redirs

    @staticmethod
    def wrap(cmd: Command, redirs: list[tuple[str, str]]) -> Command:
        for kind, file in redirs:
            if kind == "<":
                cmd = RedirCmd(cmd, file, OpenFlags.RDONLY, 0)
            elif kind == ">":
                cmd = RedirCmd(cmd, file, OpenFlags.WRONLY | OpenFlags.CREATE | OpenFlags.TRUNC, 1)
            else:
                cmd = RedirCmd(cmd, file, OpenFlags.WRONLY | OpenFlags.CREATE, 1)
        return cmd

    def parse_block(self) -> Command:
        self.take()  # the opening parenthesis
        cmd = self.parse_line()
        if not self.peek({")"}):
            raise ShellSyntaxError("syntax - missing )")
        self.take()
        return self.wrap(cmd, self.parse_redirs())

    def parse_exec(self) -> Command:
        if self.peek({"("}):
            return self.parse_block()
        argv: list[str] = []
        redirs = self.parse_redirs()
        while not self.peek({"|", ")", "&", ";"}):
            token = self.take()
            if token is None:
                break
            kind, text = token
            if kind != "word":
                raise ShellSyntaxError("syntax")
            argv.append(text)
            if len(argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            redirs.extend(self.parse_redirs())
        return self.wrap(ExecCmd(tuple(argv)), redirs)


def parse_command(line: str) -> Command:
    """Parse one command line into a command tree.

    Raises :class:`ShellSyntaxError` when the line is malformed or has
    text left over after a complete command.
    """
    parser = _Parser(_cstring(line))
    cmd = parser.parse_line()
    if not parser.at_end():
        raise ShellSyntaxError("syntax", leftovers=parser.rest())
    return cmd