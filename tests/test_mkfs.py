import struct

import pytest

from tinyunix.mkfs import (
    DiskInode,
    FsGeometry,
    ImageBuilder,
    Superblock,
    build_image,
    main,
    short_name,
)


def _read_file(image, geometry, inode):
    bs = geometry.block_size
    blocks = list(inode.addrs[: geometry.ndirect])
    if inode.addrs[geometry.ndirect]:
        ind = inode.addrs[geometry.ndirect]
        blocks += struct.unpack(f"<{geometry.nindirect}I", image[ind * bs : (ind + 1) * bs])
    data = b"".join(image[b * bs : (b + 1) * bs] for b in blocks if b)
    return data[: inode.size]


def test_short_name():
    assert short_name("user/_cat") == "cat"
    assert short_name("README") == "README"
    with pytest.raises(ValueError):
        short_name("a/b")


def test_superblock_round_trip():
    sb = Superblock.for_geometry(FsGeometry())
    assert Superblock.unpack(sb.pack()) == sb
    assert sb.logstart == 2


def test_inode_round_trip():
    ino = DiskInode(type=2, nlink=1, size=5, addrs=tuple(range(13)))
    assert DiskInode.unpack(ino.pack()) == ino


def test_file_contents_and_directory():
    g = FsGeometry()
    b = ImageBuilder(g)
    payload = bytes(range(256)) * 60  # spills into the indirect block
    inum = b.add_file("big", payload)
    image = b.finish()
    assert _read_file(image, g, b.read_inode(inum)) == payload
    root = b.read_inode(1)
    assert root.size % g.block_size == 0
    names = []
    raw = _read_file(image, g, root)
    for i in range(0, len(raw), g.dirent_size):
        entry = raw[i : i + g.dirent_size]
        if struct.unpack_from("<H", entry)[0]:
            names.append(entry[2:].rstrip(b"\0").decode())
    assert names == [".", "..", "big"]


def test_bitmap_marks_used_blocks():
    g = FsGeometry()
    b = ImageBuilder(g)
    b.add_file("x", b"hello")
    image = b.finish()
    used = b.next_block
    assert used > b.superblock.bmapstart
    start = b.superblock.bmapstart * g.block_size
    bitmap = image[start : start + g.block_size]
    full, rest = divmod(used, 8)
    expected = b"\xff" * full + bytes([(1 << rest) - 1]) + bytes(g.block_size - full - 1)
    assert bitmap == expected


def test_long_name_rejected():
    with pytest.raises(ValueError):
        ImageBuilder().add_file("x" * 15, b"")