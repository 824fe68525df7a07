"""Reading and writing ELF64 file and program headers."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import ClassVar

__all__ = [
    "ELF_MAGIC",
    "ELF_PROG_LOAD",
    "ElfFormatError",
    "ProgramFlags",
    "ElfHeader",
    "ProgramHeader",
    "program_headers",
]

ELF_MAGIC = 0x464C457F  # "\x7FELF" read as a little-endian word
ELF_PROG_LOAD = 1


class ElfFormatError(ValueError):
    """The data is not a well-formed ELF image."""


class ProgramFlags(enum.IntFlag):
    """Permission bits of a program header."""

    EXEC = 1
    WRITE = 2
    READ = 4


@dataclass(frozen=True)
class ElfHeader:
    """The ELF file header."""

    magic: int = ELF_MAGIC
    elf: bytes = bytes(12)
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = 0
    phentsize: int = 0
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<I12sHHIQQQIHHHHHH")
    SIZE: ClassVar[int] = _FORMAT.size

    @classmethod
    def parse(cls, data: bytes) -> "ElfHeader":
        """Decode the header at the start of ``data``, checking the magic."""
        if len(data) < cls.SIZE:
            raise ElfFormatError(f"ELF header needs {cls.SIZE} bytes, got {len(data)}")
        header = cls(*cls._FORMAT.unpack_from(data))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError(f"bad ELF magic {header.magic:#x}")
        return header

    def pack(self) -> bytes:
        """Encode the header."""
        return self._FORMAT.pack(
            self.magic,
            self.elf,
            self.type,
            self.machine,
            self.version,
            self.entry,
            self.phoff,
            self.shoff,
            self.flags,
            self.ehsize,
            self.phentsize,
            self.phnum,
            self.shentsize,
            self.shnum,
            self.shstrndx,
        )


@dataclass(frozen=True)
class ProgramHeader:
    """One program segment header."""

    type: int = 0
    flags: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    align: int = 0

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<IIQQQQQQ")
    SIZE: ClassVar[int] = _FORMAT.size

    @property
    def is_load(self) -> bool:
        """Whether the segment is to be loaded into memory."""
        return self.type == ELF_PROG_LOAD

    @property
    def permissions(self) -> ProgramFlags:
        """The ``flags`` field as :class:`ProgramFlags`."""
        return ProgramFlags(self.flags & 0x7)

    @classmethod
    def parse(cls, data: bytes) -> "ProgramHeader":
        """Decode a program header at the start of ``data``."""
        if len(data) < cls.SIZE:
            raise ElfFormatError(f"program header needs {cls.SIZE} bytes, got {len(data)}")
        return cls(*cls._FORMAT.unpack_from(data))

    def pack(self) -> bytes:
        """Encode the program header."""
        return self._FORMAT.pack(
            self.type,
            self.flags,
            self.off,
            self.vaddr,
            self.paddr,
            self.filesz,
            self.memsz,
            self.align,
        )


def program_headers(data: bytes) -> list[ProgramHeader]:
    """Return every program header of the ELF image in ``data``."""
    header = ElfHeader.parse(data)
    offsets = range(header.phoff, header.phoff + header.phnum * ProgramHeader.SIZE, ProgramHeader.SIZE)
    result = []
    for offset in offsets:
        chunk = data[offset : offset + ProgramHeader.SIZE]
        if len(chunk) < ProgramHeader.SIZE:
            raise ElfFormatError(f"program header at offset {offset} runs past end of image")
        result.append(ProgramHeader.parse(chunk))
    return result