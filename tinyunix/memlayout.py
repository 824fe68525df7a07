"""Physical and virtual memory layout of the emulated RISC-V board."""

from __future__ import annotations

__all__ = [
    "PGSIZE",
    "MAXVA",
    "UART0",
    "UART0_IRQ",
    "VIRTIO0",
    "VIRTIO0_IRQ",
    "PLIC",
    "PLIC_PRIORITY",
    "PLIC_PENDING",
    "KERNBASE",
    "PHYSTOP",
    "TRAMPOLINE",
    "TRAPFRAME",
    "plic_senable",
    "plic_spriority",
    "plic_sclaim",
    "kstack",
    "pgroundup",
    "pgrounddown",
]

# Sv39: 12 bits of page offset, three 9-bit indices; the top bit of the
# 39-bit space is left unused so addresses need no sign extension.
PGSIZE = 4096
MAXVA = 1 << (9 + 9 + 9 + 12 - 1)

UART0 = 0x10000000
UART0_IRQ = 10

VIRTIO0 = 0x10001000
VIRTIO0_IRQ = 1

PLIC = 0x0C000000
PLIC_PRIORITY = PLIC + 0x0
PLIC_PENDING = PLIC + 0x1000

# RAM used by the kernel and user pages runs from KERNBASE to PHYSTOP.
KERNBASE = 0x80000000
PHYSTOP = KERNBASE + 128 * 1024 * 1024

# The trampoline sits at the highest page, in both user and kernel space;
# each process's trap frame lies just beneath it.
TRAMPOLINE = MAXVA - PGSIZE
TRAPFRAME = TRAMPOLINE - PGSIZE


def plic_senable(hart: int) -> int:
    """Address of the supervisor interrupt-enable bits for ``hart``."""
    return PLIC + 0x2080 + hart * 0x100


def plic_spriority(hart: int) -> int:
    """Address of the supervisor priority threshold for ``hart``."""
    return PLIC + 0x201000 + hart * 0x2000


def plic_sclaim(hart: int) -> int:
    """Address of the supervisor claim/complete register for ``hart``."""
    return PLIC + 0x201004 + hart * 0x2000


def kstack(index: int) -> int:
    """Virtual address of kernel stack ``index``, each flanked by a guard page."""
    return TRAMPOLINE - (index + 1) * 2 * PGSIZE


def pgroundup(address: int) -> int:
    """Round ``address`` up to a page boundary."""
    return (address + PGSIZE - 1) & ~(PGSIZE - 1)


def pgrounddown(address: int) -> int:
    """Round ``address`` down to a page boundary."""
    return address & ~(PGSIZE - 1)