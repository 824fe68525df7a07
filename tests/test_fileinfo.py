import pytest

from tinyunix.fileinfo import FileType, OpenFlags, Stat


def test_stat_round_trip():
    original = Stat(dev=1, ino=17, type=FileType.FILE, nlink=2, size=123456789012)
    assert Stat.unpack(original.pack()) == original


def test_stat_negative_dev_round_trip():
    original = Stat(dev=-1, ino=1, type=FileType.DIR, nlink=1, size=0)
    assert Stat.unpack(original.pack()).dev == -1


def test_stat_packed_size():
    assert len(Stat().pack()) == 24


def test_stat_fields_are_little_endian():
    packed = Stat(dev=1, ino=2, type=3, nlink=4, size=5).pack()
    assert packed[0:4] == (1).to_bytes(4, "little")
    assert packed[4:8] == (2).to_bytes(4, "little")
    assert packed[-8:] == (5).to_bytes(8, "little")


def test_stat_unpack_ignores_trailing_bytes():
    original = Stat(dev=1, ino=3, type=2, nlink=1, size=10)
    assert Stat.unpack(original.pack() + b"extra") == original


def test_stat_unpack_short_data():
    with pytest.raises(ValueError):
        Stat.unpack(b"\0" * 10)


def test_file_type_property():
    assert Stat(type=1).file_type is FileType.DIR
    with pytest.raises(ValueError):
        Stat(type=9).file_type


def test_open_flags_combine():
    flags = OpenFlags(0x202)
    assert flags == OpenFlags.CREATE | OpenFlags.RDWR
    assert OpenFlags.TRUNC not in flags
    assert OpenFlags.CREATE in flags
    assert OpenFlags(0x400) is OpenFlags.TRUNC