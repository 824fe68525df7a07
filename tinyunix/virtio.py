"""Virtio MMIO register offsets and virtqueue structures for block devices."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import ClassVar

__all__ = [
    "NUM",
    "MmioRegister",
    "DeviceStatus",
    "BlockFeature",
    "DescFlags",
    "BlockRequestType",
    "VirtqDesc",
    "VirtqAvail",
    "VirtqUsedElem",
    "VirtqUsed",
    "BlockRequest",
]

NUM = 8  # descriptors per queue; a power of two


class MmioRegister(enum.IntEnum):
    """Offsets of the virtio MMIO control registers."""

    MAGIC_VALUE = 0x000
    VERSION = 0x004
    DEVICE_ID = 0x008
    VENDOR_ID = 0x00C
    DEVICE_FEATURES = 0x010
    DRIVER_FEATURES = 0x020
    QUEUE_SEL = 0x030
    QUEUE_NUM_MAX = 0x034
    QUEUE_NUM = 0x038
    QUEUE_READY = 0x044
    QUEUE_NOTIFY = 0x050
    INTERRUPT_STATUS = 0x060
    INTERRUPT_ACK = 0x064
    STATUS = 0x070
    QUEUE_DESC_LOW = 0x080
    QUEUE_DESC_HIGH = 0x084
    DRIVER_DESC_LOW = 0x090
    DRIVER_DESC_HIGH = 0x094
    DEVICE_DESC_LOW = 0x0A0
    DEVICE_DESC_HIGH = 0x0A4


class DeviceStatus(enum.IntFlag):
    """Bits of the device status register."""

    ACKNOWLEDGE = 1
    DRIVER = 2
    DRIVER_OK = 4
    FEATURES_OK = 8


class BlockFeature(enum.IntEnum):
    """Bit numbers of device feature flags."""

    RO = 5
    SCSI = 7
    CONFIG_WCE = 11
    MQ = 12
    ANY_LAYOUT = 27
    INDIRECT_DESC = 28
    EVENT_IDX = 29


class DescFlags(enum.IntFlag):
    """Descriptor flags."""

    NEXT = 1
    WRITE = 2


class BlockRequestType(enum.IntEnum):
    """Direction of a block request."""

    IN = 0
    OUT = 1


def _check_length(name: str, data: bytes, size: int) -> None:
    if len(data) < size:
        raise ValueError(f"{name} needs {size} bytes, got {len(data)}")


@dataclass(frozen=True)
class VirtqDesc:
    """One descriptor of the descriptor table."""

    addr: int = 0
    length: int = 0
    flags: int = 0
    next: int = 0

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<QIHH")

    def pack(self) -> bytes:
        return self._FORMAT.pack(self.addr, self.length, self.flags, self.next)

    @classmethod
    def unpack(cls, data: bytes) -> "VirtqDesc":
        _check_length("descriptor", data, cls._FORMAT.size)
        return cls(*cls._FORMAT.unpack_from(data))


@dataclass(frozen=True)
class VirtqAvail:
    """The available ring the driver fills with chain heads."""

    flags: int = 0
    idx: int = 0
    ring: tuple[int, ...] = (0,) * NUM
    unused: int = 0

    _FORMAT: ClassVar[struct.Struct] = struct.Struct(f"<HH{NUM}HH")

    def __post_init__(self) -> None:
        object.__setattr__(self, "ring", tuple(self.ring))
        if len(self.ring) != NUM:
            raise ValueError(f"available ring must hold {NUM} entries")

    def pack(self) -> bytes:
        return self._FORMAT.pack(self.flags, self.idx, *self.ring, self.unused)

    @classmethod
    def unpack(cls, data: bytes) -> "VirtqAvail":
        _check_length("available ring", data, cls._FORMAT.size)
        values = cls._FORMAT.unpack_from(data)
        return cls(values[0], values[1], tuple(values[2 : 2 + NUM]), values[2 + NUM])


@dataclass(frozen=True)
class VirtqUsedElem:
    """One completed request reported by the device."""

    id: int = 0
    length: int = 0

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<II")

    def pack(self) -> bytes:
        return self._FORMAT.pack(self.id, self.length)

    @classmethod
    def unpack(cls, data: bytes) -> "VirtqUsedElem":
        _check_length("used element", data, cls._FORMAT.size)
        return cls(*cls._FORMAT.unpack_from(data))


@dataclass(frozen=True)
class VirtqUsed:
    """The used ring written by the device."""

    flags: int = 0
    idx: int = 0
    ring: tuple[VirtqUsedElem, ...] = field(
        default_factory=lambda: tuple(VirtqUsedElem() for _ in range(NUM))
    )

    _HEAD: ClassVar[struct.Struct] = struct.Struct("<HH")
    _ELEM_SIZE: ClassVar[int] = VirtqUsedElem._FORMAT.size

    def __post_init__(self) -> None:
        object.__setattr__(self, "ring", tuple(self.ring))
        if len(self.ring) != NUM:
            raise ValueError(f"used ring must hold {NUM} entries")

    def pack(self) -> bytes:
        return self._HEAD.pack(self.flags, self.idx) + b"".join(e.pack() for e in self.ring)

    @classmethod
    def unpack(cls, data: bytes) -> "VirtqUsed":
        _check_length("used ring", data, cls._HEAD.size + NUM * cls._ELEM_SIZE)
        flags, idx = cls._HEAD.unpack_from(data)
        starts = range(cls._HEAD.size, cls._HEAD.size + NUM * cls._ELEM_SIZE, cls._ELEM_SIZE)
        ring = tuple(VirtqUsedElem.unpack(data[start : start + cls._ELEM_SIZE]) for start in starts)
        return cls(flags, idx, ring)


@dataclass(frozen=True)
class BlockRequest:
    """The first descriptor of a disk request."""

    type: int = BlockRequestType.IN
    reserved: int = 0
    sector: int = 0

    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<IIQ")

    def pack(self) -> bytes:
        return self._FORMAT.pack(self.type, self.reserved, self.sector)

    @classmethod
    def unpack(cls, data: bytes) -> "BlockRequest":
        _check_length("block request", data, cls._FORMAT.size)
        return cls(*cls._FORMAT.unpack_from(data))