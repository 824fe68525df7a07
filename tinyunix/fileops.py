"""ls, ln, rm, mkdir and kill."""

from __future__ import annotations

import os
import signal
import stat as statmod
import sys
from typing import IO

from tinyunix.fileinfo import FileType
from tinyunix.ulib import atoi

__all__ = ["fmtname", "ls", "ls_main", "ln_main", "rm_main", "mkdir_main", "kill_main"]

DIRSIZ = 14
_PATH_BUF = 512


def fmtname(path: str) -> str:
    """The last path component, blank-padded to the directory name width."""
    name = path.rsplit("/", 1)[-1]
    return name if len(name) >= DIRSIZ else name.ljust(DIRSIZ)


def _describe(path: str) -> tuple[int, int, int]:
    st = os.stat(path)
    if statmod.S_ISDIR(st.st_mode):
        kind = FileType.DIR
    elif statmod.S_ISREG(st.st_mode):
        kind = FileType.FILE
    else:
        kind = FileType.DEVICE
    return int(kind), st.st_ino, st.st_size


def ls(path: str, out: IO[str]) -> None:
    """List ``path``: a file on one line, a directory entry by entry."""
    try:
        kind, ino, size = _describe(path)
    except OSError:
        sys.stderr.write(f"ls: cannot open {path}\n")
        return
    if kind != FileType.DIR:
        out.write(f"{fmtname(path)} {kind} {ino} {size}\n")
        return
    if len(path) + 1 + DIRSIZ + 1 > _PATH_BUF:
        out.write("ls: path too long\n")
        return
    try:
        names = [".", ".."] + sorted(os.listdir(path))
    except OSError:
        sys.stderr.write(f"ls: cannot open {path}\n")
        return
    for name in names:
        full = f"{path}/{name[:DIRSIZ]}"
        try:
            kind, ino, size = _describe(full)
        except OSError:
            out.write(f"ls: cannot stat {full}\n")
            continue
        out.write(f"{fmtname(full)} {kind} {ino} {size}\n")


def _args(argv: list[str] | None) -> list[str]:
    return sys.argv[1:] if argv is None else list(argv)


def ls_main(argv: list[str] | None = None) -> int:
    args = _args(argv)
    for path in args or ["."]:
        ls(path, sys.stdout)
    return 0


def ln_main(argv: list[str] | None = None) -> int:
    args = _args(argv)
    if len(args) != 2:
        sys.stderr.write("Usage: ln old new\n")
        return 1
    try:
        os.link(args[0], args[1])
    except OSError:
        sys.stderr.write(f"link {args[0]} {args[1]}: failed\n")
    return 0


def rm_main(argv: list[str] | None = None) -> int:
    args = _args(argv)
    if not args:
        sys.stderr.write("Usage: rm files...\n")
        return 1
    for name in args:
        try:
            os.unlink(name)
        except OSError:
            sys.stderr.write(f"rm: {name} failed to delete\n")
            break
    return 0


def mkdir_main(argv: list[str] | None = None) -> int:
    args = _args(argv)
    if not args:
        sys.stderr.write("Usage: mkdir files...\n")
        return 1
    for name in args:
        try:
            os.mkdir(name)
        except OSError:
            sys.stderr.write(f"mkdir: {name} failed to create\n")
            break
    return 0


def kill_main(argv: list[str] | None = None) -> int:
    args = _args(argv)
    if not args:
        sys.stderr.write("usage: kill pid...\n")
        return 1
    for arg in args:
        pid = atoi(arg)
        if pid <= 0:
            continue
        try:
            os.kill(pid, signal.SIGTERM)
        except OSError:
            pass
    return 0