import pytest

from tinyunix.memlayout import MAXVA, PGSIZE
from tinyunix.vm import (
    BadAddress,
    OutOfMemory,
    PageTable,
    PhysicalMemory,
    PteFlag,
    VmPanic,
    px,
)


@pytest.fixture
def memory():
    return PhysicalMemory(npages=64)


@pytest.fixture
def table(memory):
    return PageTable.create(memory)


def test_px_splits_address_fields():
    va = (3 << 30) | (5 << 21) | (7 << 12) | 0x123
    assert px(2, va) == 3
    assert px(1, va) == 5
    assert px(0, va) == 7


def test_alloc_and_free_restore_count(memory):
    before = memory.free_pages()
    pa = memory.alloc()
    assert pa % PGSIZE == 0
    assert memory.free_pages() == before - 1
    memory.free(pa)
    assert memory.free_pages() == before


def test_double_free_panics(memory):
    pa = memory.alloc()
    memory.free(pa)
    with pytest.raises(VmPanic):
        memory.free(pa)


def test_memory_exhaustion():
    small = PhysicalMemory(npages=2)
    small.alloc()
    small.alloc()
    with pytest.raises(OutOfMemory):
        small.alloc()


def test_physical_read_write_round_trip(memory):
    pa = memory.alloc()
    memory.write(pa + 10, b"hello")
    assert memory.read(pa + 10, 5) == b"hello"


def test_map_and_walkaddr(memory, table):
    pa = memory.alloc()
    table.map_pages(0x5000, PGSIZE, pa, PteFlag.R | PteFlag.U)
    assert table.walkaddr(0x5000) == pa
    assert table.walkaddr(0x6000) is None


def test_walkaddr_ignores_kernel_pages(memory, table):
    pa = memory.alloc()
    table.map_pages(0, PGSIZE, pa, PteFlag.R | PteFlag.W)
    assert table.walkaddr(0) is None
    assert table.walkaddr(MAXVA) is None


def test_map_pages_errors(memory, table):
    pa = memory.alloc()
    with pytest.raises(VmPanic):
        table.map_pages(1, PGSIZE, pa, PteFlag.R)
    with pytest.raises(VmPanic):
        table.map_pages(0, 100, pa, PteFlag.R)
    with pytest.raises(VmPanic):
        table.map_pages(0, 0, pa, PteFlag.R)
    table.map_pages(0, PGSIZE, pa, PteFlag.R)
    with pytest.raises(VmPanic):
        table.map_pages(0, PGSIZE, pa, PteFlag.R)


def test_walk_beyond_maxva_panics(table):
    with pytest.raises(VmPanic):
        table.walk(MAXVA)


def test_walk_without_alloc_returns_none(table):
    assert table.walk(0x10000) is None
    assert table.walk(0x10000, True) is not None and table.walk(0x10000) is not None


def test_copyout_copyin_round_trip_across_pages(table):
    assert table.grow(0, 3 * PGSIZE, PteFlag.W) == 3 * PGSIZE
    payload = bytes(range(256)) * 20
    table.copyout(PGSIZE - 100, payload)
    assert table.copyin(PGSIZE - 100, len(payload)) == payload


def test_grow_zeroes_memory(table):
    table.grow(0, 2 * PGSIZE, PteFlag.W)
    assert table.copyin(0, 2 * PGSIZE) == bytes(2 * PGSIZE)


def test_copyin_unmapped_raises(table):
    with pytest.raises(BadAddress):
        table.copyin(0x40000, 8)
    with pytest.raises(BadAddress):
        table.copyin(MAXVA, 8)


def test_copyout_rejects_read_only_and_high_addresses(memory, table):
    pa = memory.alloc()
    table.map_pages(0, PGSIZE, pa, PteFlag.R | PteFlag.U)
    with pytest.raises(BadAddress):
        table.copyout(0, b"x")
    with pytest.raises(BadAddress):
        table.copyout(MAXVA, b"x")


def test_copyinstr(table):
    table.grow(0, PGSIZE, PteFlag.W)
    table.copyout(100, b"README\0")
    assert table.copyinstr(100, 128) == b"README"
    with pytest.raises(BadAddress):
        table.copyinstr(100, 6)


def test_copyinstr_across_page_boundary(table):
    table.grow(0, 2 * PGSIZE, PteFlag.W)
    table.copyout(PGSIZE - 3, b"abcdef\0")
    assert table.copyinstr(PGSIZE - 3, 64) == b"abcdef"


def test_copyinstr_running_off_end_of_memory(table):
    table.grow(0, PGSIZE, PteFlag.W)
    table.copyout(PGSIZE - 1, b"x")
    with pytest.raises(BadAddress):
        table.copyinstr(PGSIZE - 1, 128)


def test_grow_with_smaller_size_returns_old(table):
    assert table.grow(2 * PGSIZE, PGSIZE) == 2 * PGSIZE


def test_shrink_frees_pages(memory, table):
    table.grow(0, 3 * PGSIZE, PteFlag.W)
    before = memory.free_pages()
    assert table.shrink(3 * PGSIZE, PGSIZE) == PGSIZE
    assert memory.free_pages() == before + 2
    assert table.walkaddr(PGSIZE) is None
    assert table.walkaddr(0) is not None


def test_shrink_within_page_keeps_page(memory, table):
    table.grow(0, 2 * PGSIZE, PteFlag.W)
    before = memory.free_pages()
    assert table.shrink(2 * PGSIZE, 2 * PGSIZE - 10) == 2 * PGSIZE - 10
    assert memory.free_pages() == before
    assert table.shrink(PGSIZE, 2 * PGSIZE) == PGSIZE


def test_destroy_releases_everything(memory):
    initial = memory.free_pages()
    table = PageTable.create(memory)
    table.grow(0, 3 * PGSIZE, PteFlag.W)
    table.destroy(3 * PGSIZE)
    assert memory.free_pages() == initial


def test_destroy_with_leaves_left_panics(table):
    table.grow(0, PGSIZE, PteFlag.W)
    with pytest.raises(VmPanic):
        table.destroy(0)


def test_grow_out_of_memory_cleans_up():
    memory = PhysicalMemory(npages=8)
    table = PageTable.create(memory)
    with pytest.raises(OutOfMemory):
        table.grow(0, 100 * PGSIZE, PteFlag.W)
    assert table.walkaddr(0) is None


def test_copy_into_duplicates_memory(memory, table):
    table.grow(0, 2 * PGSIZE, PteFlag.W)
    table.copyout(10, b"parent data")
    child = PageTable.create(memory)
    table.copy_into(child, 2 * PGSIZE)
    assert child.copyin(10, 11) == b"parent data"
    assert child.walkaddr(0) != table.walkaddr(0)
    child.copyout(10, b"child")
    assert table.copyin(10, 11) == b"parent data"


def test_copy_into_out_of_memory_releases_child_pages():
    memory = PhysicalMemory(npages=12)
    parent = PageTable.create(memory)
    parent.grow(0, 6 * PGSIZE, PteFlag.W)
    child = PageTable.create(memory)
    with pytest.raises(OutOfMemory):
        parent.copy_into(child, 6 * PGSIZE)
    assert child.walkaddr(0) is None


def test_load_first(table):
    code = b"\x13\x00\x00\x00" * 4
    table.load_first(code)
    assert table.copyin(0, len(code)) == code
    assert table.copyin(len(code), 4) == bytes(4)


def test_load_first_too_large(table):
    with pytest.raises(VmPanic):
        table.load_first(bytes(PGSIZE))


def test_clear_user(table):
    table.grow(0, 2 * PGSIZE, PteFlag.W)
    table.clear_user(0)
    assert table.walkaddr(0) is None
    with pytest.raises(BadAddress):
        table.copyin(0, 1)
    with pytest.raises(VmPanic):
        table.clear_user(0x800000)


def test_unmap_errors(memory, table):
    with pytest.raises(VmPanic):
        table.unmap(1, 1, False)
    with pytest.raises(VmPanic):
        table.unmap(0, 1, False)
    table.grow(0, PGSIZE, PteFlag.W)
    with pytest.raises(VmPanic):
        table.unmap(PGSIZE, 1, False)


def test_unmap_without_free_keeps_page_allocated(memory, table):
    pa = memory.alloc()
    table.map_pages(0, PGSIZE, pa, PteFlag.R | PteFlag.U)
    before = memory.free_pages()
    table.unmap(0, 1, False)
    assert memory.free_pages() == before
    assert table.walkaddr(0) is None
    memory.free(pa)
    assert memory.free_pages() == before + 1