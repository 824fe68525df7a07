"""A first-fit free-list allocator over a simulated growing heap."""

from __future__ import annotations

import bisect

__all__ = ["Allocator"]


class Allocator:
    """Hands out addresses in a heap that grows in large steps.

    Every block carries a one-unit header; blocks are kept in address
    order, adjacent free blocks are merged, and searching starts just
    after the block where the previous search stopped.
    """

    UNIT = 16
    MIN_CORE = 4096

    def __init__(self, heap_limit: int = 1 << 24, base: int = 0x1000) -> None:
        self.heap_limit = heap_limit
        self.base = base
        self._free: list[list[int]] = []  # [start, size] in units, sorted
        self._sizes: dict[int, int] = {}  # allocated block start -> size
        self._rover = -1
        self._brk = 0

    def _address(self, unit: int) -> int:
        return self.base + (unit + 1) * self.UNIT

    def _find(self, nunits: int) -> int | None:
        split = bisect.bisect_right([b[0] for b in self._free], self._rover)
        order = list(range(split, len(self._free))) + list(range(split))
        return next((i for i in order if self._free[i][1] >= nunits), None)

    def _morecore(self, nunits: int) -> None:
        nu = max(nunits, self.MIN_CORE)
        if (self._brk + nu) * self.UNIT > self.heap_limit:
            raise MemoryError("heap exhausted")
        start = self._brk
        self._brk += nu
        self._sizes[start] = nu
        self.free(self._address(start))

    def malloc(self, nbytes: int) -> int:
        """Reserve ``nbytes`` and return the address of the usable space."""
        if nbytes < 0:
            raise ValueError("size must not be negative")
        nunits = (nbytes + self.UNIT - 1) // self.UNIT + 1
        while (idx := self._find(nunits)) is None:
            self._morecore(nunits)
        block = self._free[idx]
        self._rover = self._free[idx - 1][0] if idx > 0 else -1
        if block[1] == nunits:
            del self._free[idx]
            start = block[0]
        else:
            block[1] -= nunits
            start = block[0] + block[1]
        self._sizes[start] = nunits
        return self._address(start)

    def free(self, address: int) -> None:
        """Give back a block that :meth:`malloc` returned."""
        offset = address - self.base
        unit = offset // self.UNIT - 1
        if offset % self.UNIT or unit not in self._sizes:
            raise ValueError(f"address {address:#x} was not allocated")
        size = self._sizes.pop(unit)
        idx = bisect.bisect_left(self._free, [unit, 0])
        if idx < len(self._free) and unit + size == self._free[idx][0]:
            size += self._free.pop(idx)[1]
        if idx > 0 and self._free[idx - 1][0] + self._free[idx - 1][1] == unit:
            self._free[idx - 1][1] += size
            self._rover = self._free[idx - 1][0]
            return
        self._free.insert(idx, [unit, size])
        if idx > 0:
            self._rover = self._free[idx - 1][0]
        else:
            self._rover = self._free[-1][0]

    def free_blocks(self) -> list[tuple[int, int]]:
        """(address of header, size in bytes) of every free block, in address order."""
        return [(self.base + s * self.UNIT, n * self.UNIT) for s, n in self._free]