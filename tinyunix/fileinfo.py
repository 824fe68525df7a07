"""File types, open flags and the stat record."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import ClassVar

__all__ = ["FileType", "OpenFlags", "Stat"]


class FileType(enum.IntEnum):
    """Kinds of inode."""

    DIR = 1
    FILE = 2
    DEVICE = 3


class OpenFlags(enum.IntFlag):
    """Flags accepted when opening a file."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200
    TRUNC = 0x400


@dataclass(frozen=True)
class Stat:
    """What a stat call reports about a file."""

    dev: int = 0
    ino: int = 0
    type: int = 0
    nlink: int = 0
    size: int = 0

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<iIhh4xQ")

    @property
    def file_type(self) -> FileType:
        """The ``type`` field as a :class:`FileType`."""
        return FileType(self.type)

    def pack(self) -> bytes:
        """Encode in the little-endian on-disk layout."""
        return self._FORMAT.pack(self.dev, self.ino, self.type, self.nlink, self.size)

    @classmethod
    def unpack(cls, data: bytes) -> "Stat":
        """Decode a record produced by :meth:`pack`."""
        if len(data) < cls._FORMAT.size:
            raise ValueError(f"stat record needs {cls._FORMAT.size} bytes, got {len(data)}")
        return cls(*cls._FORMAT.unpack_from(data))