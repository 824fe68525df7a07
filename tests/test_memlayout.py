import pytest

from tinyunix import memlayout as ml


def test_trampoline_and_trapframe_addresses():
    assert ml.pgrounddown(ml.MAXVA - 1) == 0x3FFFFFF000
    assert ml.pgrounddown(ml.TRAMPOLINE - 1) == 0x3FFFFFE000
    assert ml.kstack(0) == 0x3FFFFFD000
    assert ml.pgroundup(ml.TRAMPOLINE + 1) == 0x4000000000


def test_trampoline_is_last_page():
    assert ml.pgrounddown(ml.MAXVA - 1) == ml.TRAMPOLINE
    assert ml.pgroundup(ml.TRAMPOLINE + 1) == ml.MAXVA
    assert ml.pgrounddown(ml.TRAMPOLINE - 1) == ml.TRAPFRAME


def test_physical_ram_is_128_megabytes():
    assert ml.pgroundup(ml.PHYSTOP) - ml.pgrounddown(ml.KERNBASE) == 128 * 1024 * 1024
    assert ml.pgrounddown(ml.KERNBASE + 1) == 0x80000000


def test_plic_registers_are_per_hart():
    assert ml.plic_senable(1) - ml.plic_senable(0) == 0x100
    assert ml.plic_spriority(1) - ml.plic_spriority(0) == 0x2000
    assert ml.plic_senable(0) == ml.PLIC + 0x2080


@pytest.mark.parametrize("hart", [0, 1, 2, 7])
def test_claim_follows_priority(hart):
    assert ml.plic_sclaim(hart) - ml.plic_spriority(hart) == 4


@pytest.mark.parametrize("index", [0, 1, 5, 63])
def test_kernel_stacks_have_guard_pages(index):
    base = ml.kstack(index)
    assert base % ml.PGSIZE == 0
    assert base + ml.PGSIZE < ml.TRAMPOLINE
    assert ml.kstack(index) - ml.kstack(index + 1) == 2 * ml.PGSIZE


@pytest.mark.parametrize("address", [0, 1, 4095, 4096, 4097, 123456789])
def test_rounding_invariants(address):
    up = ml.pgroundup(address)
    down = ml.pgrounddown(address)
    assert up % ml.PGSIZE == 0
    assert down % ml.PGSIZE == 0
    assert down <= address <= up
    assert up - down in (0, ml.PGSIZE)


def test_rounding_values():
    assert ml.pgroundup(1) == ml.PGSIZE
    assert ml.pgroundup(ml.PGSIZE) == ml.PGSIZE
    assert ml.pgrounddown(ml.PGSIZE + 1) == ml.PGSIZE
    assert ml.pgrounddown(ml.PGSIZE - 1) == 0