"""Build a file-system image holding a root directory and a set of files."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Iterable

from tinyunix.fileinfo import FileType

__all__ = [
    "FsGeometry",
    "Superblock",
    "DiskInode",
    "ImageBuilder",
    "short_name",
    "build_image",
    "main",
]

ROOTINO = 1
_DIRENT_HEAD = struct.Struct("<H")


@dataclass(frozen=True)
class FsGeometry:
    """Sizes that fix the layout of an image.

    Disk layout: boot block, superblock, log, inode blocks, free bitmap,
    data blocks.  One file-system block is one disk sector.
    """

    block_size: int = 1024
    fs_size: int = 2000
    ninodes: int = 200
    nlog: int = 30
    ndirect: int = 12
    dirsiz: int = 14
    magic: int = 0x10203040

    def __post_init__(self) -> None:
        if self.block_size % self.dinode_size:
            raise ValueError("block size must be a multiple of the inode size")
        if self.block_size % self.dirent_size:
            raise ValueError("block size must be a multiple of the directory entry size")

    @property
    def dinode_size(self) -> int:
        return 12 + 4 * (self.ndirect + 1)

    @property
    def dirent_size(self) -> int:
        return 2 + self.dirsiz

    @property
    def ipb(self) -> int:
        """Inodes per block."""
        return self.block_size // self.dinode_size

    @property
    def bpb(self) -> int:
        """Bitmap bits per block."""
        return self.block_size * 8

    @property
    def nindirect(self) -> int:
        return self.block_size // 4

    @property
    def maxfile(self) -> int:
        return self.ndirect + self.nindirect

    @property
    def nbitmap(self) -> int:
        return self.fs_size // self.bpb + 1

    @property
    def ninodeblocks(self) -> int:
        return self.ninodes // self.ipb + 1

    @property
    def nmeta(self) -> int:
        return 2 + self.nlog + self.ninodeblocks + self.nbitmap

    @property
    def nblocks(self) -> int:
        return self.fs_size - self.nmeta


@dataclass(frozen=True)
class Superblock:
    """The second block of the image, describing its layout."""

    magic: int
    size: int
    nblocks: int
    ninodes: int
    nlog: int
    logstart: int
    inodestart: int
    bmapstart: int

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<8I")

    @classmethod
    def for_geometry(cls, geometry: FsGeometry) -> "Superblock":
        return cls(
            magic=geometry.magic,
            size=geometry.fs_size,
            nblocks=geometry.nblocks,
            ninodes=geometry.ninodes,
            nlog=geometry.nlog,
            logstart=2,
            inodestart=2 + geometry.nlog,
            bmapstart=2 + geometry.nlog + geometry.ninodeblocks,
        )

    def pack(self) -> bytes:
        return self._FORMAT.pack(
            self.magic, self.size, self.nblocks, self.ninodes,
            self.nlog, self.logstart, self.inodestart, self.bmapstart,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "Superblock":
        if len(data) < cls._FORMAT.size:
            raise ValueError(f"superblock needs {cls._FORMAT.size} bytes, got {len(data)}")
        return cls(*cls._FORMAT.unpack_from(data))


@dataclass(frozen=True)
class DiskInode:
    """An inode as stored on disk; ``addrs`` holds the direct blocks and one indirect."""

    type: int = 0
    major: int = 0
    minor: int = 0
    nlink: int = 0
    size: int = 0
    addrs: tuple[int, ...] = field(default_factory=lambda: (0,) * 13)

    def __post_init__(self) -> None:
        object.__setattr__(self, "addrs", tuple(self.addrs))

    def pack(self) -> bytes:
        return struct.pack(
            f"<HHHHI{len(self.addrs)}I",
            self.type, self.major, self.minor, self.nlink, self.size, *self.addrs,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "DiskInode":
        if len(data) < 16 or (len(data) - 12) % 4:
            raise ValueError(f"bad inode record length {len(data)}")
        count = (len(data) - 12) // 4
        values = struct.unpack(f"<HHHHI{count}I", data)
        return cls(*values[:5], addrs=values[5:])


def short_name(path: str) -> str:
    """The name a file gets in the image: no ``user/`` prefix, no leading ``_``."""
    name = path[5:] if path.startswith("user/") else path
    if "/" in name:
        raise ValueError(f"{path}: file name may not contain a directory")
    return name[1:] if name.startswith("_") else name


class ImageBuilder:
    """An in-memory image with a root directory, to which files are appended."""

    def __init__(self, geometry: FsGeometry | None = None) -> None:
        self.geometry = geometry or FsGeometry()
        g = self.geometry
        self.superblock = Superblock.for_geometry(g)
        self._image = bytearray(g.fs_size * g.block_size)
        self._next_inode = 1
        self.next_block = g.nmeta
        self._write_block(1, self.superblock.pack())
        self.root = self.ialloc(FileType.DIR)
        if self.root != ROOTINO:
            raise RuntimeError("root inode was not the first inode")
        self._add_dirent(self.root, self.root, ".")
        self._add_dirent(self.root, self.root, "..")

    def _read_block(self, sec: int) -> bytes:
        bs = self.geometry.block_size
        if not 0 <= sec < self.geometry.fs_size:
            raise ValueError(f"block {sec} outside image")
        return bytes(self._image[sec * bs : (sec + 1) * bs])

    def _write_block(self, sec: int, data: bytes) -> None:
        bs = self.geometry.block_size
        if not 0 <= sec < self.geometry.fs_size:
            raise ValueError(f"block {sec} outside image")
        self._image[sec * bs : (sec + 1) * bs] = bytes(data).ljust(bs, b"\0")

    def _inode_location(self, inum: int) -> tuple[int, int]:
        g = self.geometry
        return inum // g.ipb + self.superblock.inodestart, (inum % g.ipb) * g.dinode_size

    def _alloc_block(self) -> int:
        block = self.next_block
        if block >= self.geometry.fs_size:
            raise ValueError("image has no free blocks left")
        self.next_block += 1
        return block

    def ialloc(self, file_type: int) -> int:
        """Allocate a new inode of ``file_type`` with one link and return its number."""
        inum = self._next_inode
        if inum >= self.geometry.ninodes:
            raise ValueError("image has no free inodes left")
        self._next_inode += 1
        self.write_inode(
            inum, DiskInode(type=int(file_type), nlink=1, addrs=(0,) * (self.geometry.ndirect + 1))
        )
        return inum

    def read_inode(self, inum: int) -> DiskInode:
        block, offset = self._inode_location(inum)
        data = self._read_block(block)
        return DiskInode.unpack(data[offset : offset + self.geometry.dinode_size])

    def write_inode(self, inum: int, inode: DiskInode) -> None:
        block, offset = self._inode_location(inum)
        data = bytearray(self._read_block(block))
        data[offset : offset + self.geometry.dinode_size] = inode.pack()
        self._write_block(block, data)

    def iappend(self, inum: int, data: bytes) -> None:
        """Append ``data`` to the file of inode ``inum``, allocating blocks as needed."""
        g = self.geometry
        bs = g.block_size
        inode = self.read_inode(inum)
        addrs = list(inode.addrs)
        off = inode.size
        view = memoryview(bytes(data))
        while view:
            fbn = off // bs
            if fbn >= g.maxfile:
                raise ValueError(f"inode {inum}: file too large")
            if fbn < g.ndirect:
                if addrs[fbn] == 0:
                    addrs[fbn] = self._alloc_block()
                block = addrs[fbn]
            else:
                if addrs[g.ndirect] == 0:
                    addrs[g.ndirect] = self._alloc_block()
                indirect = list(struct.unpack(f"<{g.nindirect}I", self._read_block(addrs[g.ndirect])))
                slot = fbn - g.ndirect
                if indirect[slot] == 0:
                    indirect[slot] = self._alloc_block()
                    self._write_block(addrs[g.ndirect], struct.pack(f"<{g.nindirect}I", *indirect))
                block = indirect[slot]
            n1 = min(len(view), (fbn + 1) * bs - off)
            buf = bytearray(self._read_block(block))
            start = off - fbn * bs
            buf[start : start + n1] = view[:n1]
            self._write_block(block, buf)
            view = view[n1:]
            off += n1
        self.write_inode(
            inum,
            DiskInode(inode.type, inode.major, inode.minor, inode.nlink, off, tuple(addrs)),
        )

    def _add_dirent(self, directory: int, inum: int, name: str) -> None:
        raw = name.encode("utf-8")
        if len(raw) > self.geometry.dirsiz:
            raise ValueError(f"{name}: name longer than {self.geometry.dirsiz} bytes")
        entry = _DIRENT_HEAD.pack(inum) + raw.ljust(self.geometry.dirsiz, b"\0")
        self.iappend(directory, entry)

    def add_file(self, name: str, data: bytes) -> int:
        """Create a regular file ``name`` in the root directory and return its inode."""
        if len(name.encode("utf-8")) > self.geometry.dirsiz:
            raise ValueError(f"{name}: name longer than {self.geometry.dirsiz} bytes")
        inum = self.ialloc(FileType.FILE)
        self._add_dirent(self.root, inum, name)
        self.iappend(inum, data)
        return inum

    def finish(self) -> bytes:
        """Round the root directory to whole blocks, write the bitmap, return the image."""
        g = self.geometry
        root = self.read_inode(self.root)
        size = (root.size // g.block_size + 1) * g.block_size
        self.write_inode(
            self.root, DiskInode(root.type, root.major, root.minor, root.nlink, size, root.addrs)
        )
        used = self.next_block
        if used >= g.bpb:
            raise ValueError("allocated blocks do not fit in one bitmap block")
        bitmap = bytearray(g.block_size)
        for i in range(used):
            bitmap[i // 8] |= 1 << (i % 8)
        self._write_block(self.superblock.bmapstart, bitmap)
        return bytes(self._image)


def build_image(path: str | Path, sources: Iterable[str], geometry: FsGeometry | None = None) -> ImageBuilder:
    """Write an image at ``path`` holding each file named in ``sources``."""
    builder = ImageBuilder(geometry)
    for source in sources:
        name = short_name(source)
        builder.add_file(name, Path(source).read_bytes())
    Path(path).write_bytes(builder.finish())
    return builder


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("Usage: mkfs fs.img files...", file=sys.stderr)
        return 1
    g = FsGeometry()
    print(
        f"nmeta {g.nmeta} (boot, super, log blocks {g.nlog} inode blocks {g.ninodeblocks}, "
        f"bitmap blocks {g.nbitmap}) blocks {g.nblocks} total {g.fs_size}"
    )
    try:
        builder = build_image(args[0], args[1:], g)
    except (OSError, ValueError) as exc:
        print(f"mkfs: {exc}", file=sys.stderr)
        return 1
    print(f"balloc: first {builder.next_block} blocks have been allocated")
    print(f"balloc: write bitmap block at sector {builder.superblock.bmapstart}")
    return 0