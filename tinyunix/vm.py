"""Sv39 three-level page tables kept in a simulated physical memory."""

from __future__ import annotations

import enum
import struct

from tinyunix.memlayout import KERNBASE, MAXVA, PGSIZE, pgrounddown, pgroundup

__all__ = [
    "VmPanic",
    "OutOfMemory",
    "BadAddress",
    "PteFlag",
    "PhysicalMemory",
    "PageTable",
    "px",
]

_PTES_PER_PAGE = PGSIZE // 8
_PTE = struct.Struct("<Q")


class VmPanic(RuntimeError):
    """An invariant of the memory system was broken."""


class OutOfMemory(MemoryError):
    """No physical page was available."""


class BadAddress(ValueError):
    """A user virtual address is not mapped with the needed permissions."""


class PteFlag(enum.IntFlag):
    """Bits of a page-table entry."""

    V = 1 << 0
    R = 1 << 1
    W = 1 << 2
    X = 1 << 3
    U = 1 << 4


def px(level: int, va: int) -> int:
    """The 9-bit page-table index of ``va`` at ``level`` (0, 1 or 2)."""
    return (va >> (12 + 9 * level)) & 0x1FF


def _pa2pte(pa: int) -> int:
    return (pa >> 12) << 10


def _pte2pa(pte: int) -> int:
    return (pte >> 10) << 12


def _pte_flags(pte: int) -> int:
    return pte & 0x3FF


class PhysicalMemory:
    """A contiguous range of page-sized physical memory with a page allocator."""

    def __init__(self, npages: int = 1024, base: int = KERNBASE) -> None:
        if base % PGSIZE:
            raise ValueError("physical base must be page aligned")
        if npages <= 0:
            raise ValueError("physical memory needs at least one page")
        self.base = base
        self.end = base + npages * PGSIZE
        self._data = bytearray(npages * PGSIZE)
        self._free = list(range(self.end - PGSIZE, base - 1, -PGSIZE))
        self._allocated: set[int] = set()

    def alloc(self) -> int:
        """Hand out one free page and return its physical address."""
        if not self._free:
            raise OutOfMemory("out of physical pages")
        pa = self._free.pop()
        self._allocated.add(pa)
        return pa

    def free(self, pa: int) -> None:
        """Return the page at ``pa`` to the allocator."""
        if pa % PGSIZE or not self.base <= pa < self.end:
            raise VmPanic(f"kfree: bad address {pa:#x}")
        if pa not in self._allocated:
            raise VmPanic(f"kfree: page {pa:#x} is not allocated")
        self._allocated.remove(pa)
        self._free.append(pa)

    def _offset(self, pa: int, length: int) -> int:
        if length < 0 or pa < self.base or pa + length > self.end:
            raise VmPanic(f"physical access {pa:#x}+{length} outside memory")
        return pa - self.base

    def read(self, pa: int, length: int) -> bytes:
        """Return ``length`` bytes starting at ``pa``."""
        start = self._offset(pa, length)
        return bytes(self._data[start : start + length])

    def write(self, pa: int, data: bytes) -> None:
        """Store ``data`` starting at ``pa``."""
        start = self._offset(pa, len(data))
        self._data[start : start + len(data)] = data

    def free_pages(self) -> int:
        """Number of pages not handed out."""
        return len(self._free)


class PageTable:
    """A user or kernel page table whose pages live in ``memory``."""

    def __init__(self, memory: PhysicalMemory, root: int) -> None:
        self.memory = memory
        self.root = root

    @classmethod
    def create(cls, memory: PhysicalMemory) -> "PageTable":
        """Allocate an empty page table."""
        root = memory.alloc()
        memory.write(root, bytes(PGSIZE))
        return cls(memory, root)

    def _load(self, pte_addr: int) -> int:
        return _PTE.unpack(self.memory.read(pte_addr, 8))[0]

    def _store(self, pte_addr: int, value: int) -> None:
        self.memory.write(pte_addr, _PTE.pack(value))

    def walk(self, va: int, alloc: bool = False) -> int | None:
        """Physical address of the leaf PTE for ``va``.

        Missing intermediate tables are created when ``alloc`` is true
        (raising :class:`OutOfMemory` if none can be had); otherwise
        ``None`` is returned.
        """
        if va >= MAXVA:
            raise VmPanic("walk")
        table = self.root
        for level in (2, 1):
            pte_addr = table + 8 * px(level, va)
            pte = self._load(pte_addr)
            if pte & PteFlag.V:
                table = _pte2pa(pte)
            else:
                if not alloc:
                    return None
                table = self.memory.alloc()
                self.memory.write(table, bytes(PGSIZE))
                self._store(pte_addr, _pa2pte(table) | PteFlag.V)
        return table + 8 * px(0, va)

    def walkaddr(self, va: int) -> int | None:
        """Physical page of user address ``va``, or ``None`` if not a user mapping."""
        if va >= MAXVA:
            return None
        pte_addr = self.walk(va)
        if pte_addr is None:
            return None
        pte = self._load(pte_addr)
        if not pte & PteFlag.V or not pte & PteFlag.U:
            return None
        return _pte2pa(pte)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map ``size`` bytes at ``va`` to physical memory at ``pa``."""
        if va % PGSIZE:
            raise VmPanic("mappages: va not aligned")
        if size % PGSIZE:
            raise VmPanic("mappages: size not aligned")
        if size == 0:
            raise VmPanic("mappages: size")
        for offset in range(0, size, PGSIZE):
            pte_addr = self.walk(va + offset, True)
            if self._load(pte_addr) & PteFlag.V:
                raise VmPanic("mappages: remap")
            self._store(pte_addr, _pa2pte(pa + offset) | int(perm) | PteFlag.V)

    def unmap(self, va: int, npages: int, do_free: bool) -> None:
        """Remove ``npages`` existing mappings from ``va``, optionally freeing the pages."""
        if va % PGSIZE:
            raise VmPanic("uvmunmap: not aligned")
        for a in range(va, va + npages * PGSIZE, PGSIZE):
            pte_addr = self.walk(a)
            if pte_addr is None:
                raise VmPanic("uvmunmap: walk")
            pte = self._load(pte_addr)
            if not pte & PteFlag.V:
                raise VmPanic("uvmunmap: not mapped")
            if _pte_flags(pte) == PteFlag.V:
                raise VmPanic("uvmunmap: not a leaf")
            if do_free:
                self.memory.free(_pte2pa(pte))
            self._store(pte_addr, 0)

    def load_first(self, code: bytes) -> None:
        """Place ``code`` (under a page) at address zero for the first process."""
        if len(code) >= PGSIZE:
            raise VmPanic("uvmfirst: more than a page")
        mem = self.memory.alloc()
        self.memory.write(mem, bytes(PGSIZE))
        self.map_pages(0, PGSIZE, mem, PteFlag.W | PteFlag.R | PteFlag.X | PteFlag.U)
        self.memory.write(mem, bytes(code))

    def grow(self, oldsz: int, newsz: int, xperm: int = 0) -> int:
        """Allocate zeroed user pages to grow from ``oldsz`` to ``newsz``.

        Returns the new size.  On failure the pages added so far are
        released and :class:`OutOfMemory` is raised.
        """
        if newsz < oldsz:
            return oldsz
        oldsz = pgroundup(oldsz)
        for a in range(oldsz, newsz, PGSIZE):
            try:
                mem = self.memory.alloc()
            except OutOfMemory:
                self.shrink(a, oldsz)
                raise
            self.memory.write(mem, bytes(PGSIZE))
            try:
                self.map_pages(a, PGSIZE, mem, PteFlag.R | PteFlag.U | int(xperm))
            except OutOfMemory:
                self.memory.free(mem)
                self.shrink(a, oldsz)
                raise
        return newsz

    def shrink(self, oldsz: int, newsz: int) -> int:
        """Free user pages to bring the size from ``oldsz`` down to ``newsz``."""
        if newsz >= oldsz:
            return oldsz
        if pgroundup(newsz) < pgroundup(oldsz):
            npages = (pgroundup(oldsz) - pgroundup(newsz)) // PGSIZE
            self.unmap(pgroundup(newsz), npages, True)
        return newsz

    def _freewalk(self, table: int) -> None:
        page = self.memory.read(table, PGSIZE)
        for index, (pte,) in enumerate(_PTE.iter_unpack(page)):
            if pte & PteFlag.V and not pte & (PteFlag.R | PteFlag.W | PteFlag.X):
                self._freewalk(_pte2pa(pte))
                self._store(table + 8 * index, 0)
            elif pte & PteFlag.V:
                raise VmPanic("freewalk: leaf")
        self.memory.free(table)

    def destroy(self, size: int) -> None:
        """Free ``size`` bytes of user memory, then every page-table page."""
        if size > 0:
            self.unmap(0, pgroundup(size) // PGSIZE, True)
        self._freewalk(self.root)

    def copy_into(self, other: "PageTable", size: int) -> None:
        """Copy the first ``size`` bytes of mappings and memory into ``other``.

        On failure everything already copied is released and
        :class:`OutOfMemory` is raised.
        """
        for va in range(0, size, PGSIZE):
            pte_addr = self.walk(va)
            if pte_addr is None:
                raise VmPanic("uvmcopy: pte should exist")
            pte = self._load(pte_addr)
            if not pte & PteFlag.V:
                raise VmPanic("uvmcopy: page not present")
            try:
                mem = self.memory.alloc()
            except OutOfMemory:
                other.unmap(0, va // PGSIZE, True)
                raise
            self.memory.write(mem, self.memory.read(_pte2pa(pte), PGSIZE))
            try:
                other.map_pages(va, PGSIZE, mem, _pte_flags(pte))
            except OutOfMemory:
                self.memory.free(mem)
                other.unmap(0, va // PGSIZE, True)
                raise

    def clear_user(self, va: int) -> None:
        """Take away user access to the page at ``va``."""
        pte_addr = self.walk(va)
        if pte_addr is None:
            raise VmPanic("uvmclear")
        self._store(pte_addr, self._load(pte_addr) & ~PteFlag.U)

    def copyout(self, dstva: int, data: bytes) -> None:
        """Write ``data`` to user virtual address ``dstva``."""
        view = memoryview(bytes(data))
        done = 0
        while done < len(view):
            va0 = pgrounddown(dstva)
            if va0 >= MAXVA:
                raise BadAddress(f"address {dstva:#x} beyond MAXVA")
            pte_addr = self.walk(va0)
            pte = 0 if pte_addr is None else self._load(pte_addr)
            needed = PteFlag.V | PteFlag.U | PteFlag.W
            if pte & needed != needed:
                raise BadAddress(f"address {dstva:#x} not writable by user")
            n = min(PGSIZE - (dstva - va0), len(view) - done)
            self.memory.write(_pte2pa(pte) + (dstva - va0), view[done : done + n])
            done += n
            dstva = va0 + PGSIZE

    def copyin(self, srcva: int, length: int) -> bytes:
        """Read ``length`` bytes from user virtual address ``srcva``."""
        chunks = []
        while length > 0:
            va0 = pgrounddown(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise BadAddress(f"address {srcva:#x} not mapped for user")
            n = min(PGSIZE - (srcva - va0), length)
            chunks.append(self.memory.read(pa0 + (srcva - va0), n))
            length -= n
            srcva = va0 + PGSIZE
        return b"".join(chunks)

    def copyinstr(self, srcva: int, limit: int) -> bytes:
        """Read a NUL-terminated string of at most ``limit`` bytes, terminator included.

        The string is returned without its terminator.
        """
        chunks = []
        while limit > 0:
            va0 = pgrounddown(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise BadAddress(f"address {srcva:#x} not mapped for user")
            n = min(PGSIZE - (srcva - va0), limit)
            chunk = self.memory.read(pa0 + (srcva - va0), n)
            end = chunk.find(b"\0")
            if end >= 0:
                chunks.append(chunk[:end])
                return b"".join(chunks)
            chunks.append(chunk)
            limit -= n
            srcva = va0 + PGSIZE
        raise BadAddress("string not terminated within limit")