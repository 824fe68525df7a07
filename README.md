# tinyunix

Pieces of a small Unix, written in plain Python with no dependencies
beyond the standard library.

## What is in the package

- `tinyunix.mkfs` – builds a file system image (boot block, superblock,
  log, inode blocks, free bitmap, data blocks) whose root directory holds
  the given files. `FsGeometry` fixes the sizes, `Superblock` and
  `DiskInode` are the on-disk records, and `ImageBuilder` allocates
  inodes, appends data through direct and indirect blocks, and writes the
  bitmap in `finish()`. `build_image(path, sources, geometry)` does the
  whole job and writes the image file.
- `tinyunix.vm` – three-level Sv39 page tables kept in a simulated
  `PhysicalMemory`. `PageTable` offers `walk`, `walkaddr`, `map_pages`,
  `unmap`, `load_first`, `grow`, `shrink`, `destroy`, `copy_into`,
  `clear_user`, `copyout`, `copyin` and `copyinstr`. Broken invariants
  raise `VmPanic`, running out of pages raises `OutOfMemory`, and user
  addresses without the needed permissions raise `BadAddress`.
- `tinyunix.memlayout` – physical and virtual addresses of the UART,
  virtio disk, PLIC, kernel base, trampoline and trap frame, with
  `plic_senable`, `plic_spriority`, `plic_sclaim`, `kstack`, `pgroundup`
  and `pgrounddown`.
- `tinyunix.elf` – `ElfHeader` and `ProgramHeader` with `parse` and
  `pack`, `ProgramFlags`, and `program_headers(data)`; bad input raises
  `ElfFormatError`.
- `tinyunix.virtio` – MMIO register offsets (`MmioRegister`), status bits
  (`DeviceStatus`), feature bits (`BlockFeature`), and the packed
  structures `VirtqDesc`, `VirtqAvail`, `VirtqUsedElem`, `VirtqUsed` and
  `BlockRequest`.
- `tinyunix.fileinfo` – `FileType`, `OpenFlags` and the `Stat` record
  with `pack` and `unpack`.
- `tinyunix.shparse` – `tokenize(line)` and `parse_command(line)`, which
  turn a command line with `|`, `;`, `&`, `<`, `>`, `>>` and parentheses
  into a tree of `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and
  `BackCmd`. Malformed lines raise `ShellSyntaxError`, whose `leftovers`
  holds any unparsed tail. A command takes at most nine arguments.
- `tinyunix.fmt` – `format_message`, `fprintf` and `printf` understanding
  `%d`, `%u`, `%x` (with `l` and `ll` forms), `%p`, `%s` and `%%`.
  Integers are printed as 32-bit values; unknown directives are copied
  through with their percent sign.
- `tinyunix.umalloc` – `Allocator`, a first-fit free-list allocator over
  a simulated heap, with `malloc`, `free` and `free_blocks`.
- `tinyunix.rand` – the Park–Miller generator: `next_value(state)` and
  the iterable `ParkMillerRandom`.
- `tinyunix.ulib` – `atoi`, `gets` and `strcmp`.
- `tinyunix.grep`, `tinyunix.text`, `tinyunix.fileops` – the command-line
  tools below, with `match`, `grep`, `cat`, `echo`, `wc`, `fmtname` and
  `ls` usable as functions.

## Installing

```
pip install .
```

Python 3.10 or newer is required.

## Command-line tools

Build a file system image holding some files:

```
tinyunix-mkfs fs.img README.md notes.txt
```

A leading `user/` in each path and then a leading `_` in the file name
are dropped, so `user/_cat` is stored as `cat`. Any other path that
contains a directory is refused, as is a name longer than 14 bytes.

Search, count and print:

```
tinyunix-grep '^ab*c$' input.txt
tinyunix-wc input.txt
tinyunix-cat first.txt second.txt
tinyunix-echo hello world
```

`tinyunix-grep` supports only `^`, `.`, `*` and `$`, and prints matching
newline-terminated lines. `tinyunix-wc` prints lines, words and
characters followed by the file name.

Work with files and processes on the host:

```
tinyunix-ls .
tinyunix-ln old new
tinyunix-rm unwanted.txt
tinyunix-mkdir newdir
tinyunix-kill 12345
```

`tinyunix-ls` prints each entry as a name padded to 14 characters, a type
number (1 directory, 2 file, 3 anything else), the inode number and the
size; a directory is listed with `.` and `..` first and the rest sorted.
`tinyunix-rm` and `tinyunix-mkdir` stop at the first failure.
`tinyunix-kill` sends `SIGTERM` to each positive process id.

## Library use

Parse a shell line:

```python
from tinyunix.shparse import parse_command

tree = parse_command("cat < in.txt | grep x > out.txt; echo done &")
```

Map and copy memory through a page table:

```python
from tinyunix.vm import PageTable, PhysicalMemory, PteFlag

memory = PhysicalMemory()
table = PageTable.create(memory)
size = table.grow(0, 8192, PteFlag.W)
table.copyout(100, b"hello\0")
assert table.copyinstr(100, 64) == b"hello"
```

Match a line the way `grep` does:

```python
from tinyunix.grep import match

assert match("^a.c$", "abc")
```

Format like the user-level `printf`:

```python
from tinyunix.fmt import format_message

format_message("%d items at %p", 3, 0x1000)  # '3 items at 0x0000000000001000'
```

## What the package does not do

- It does not boot or run an operating system: there is no scheduler,
  no processes, no system calls and no trap handling. The page tables
  and memory layout are models to be driven from Python.
- The shell is a parser only; nothing runs the command trees it builds.
- The virtio module describes the registers and structures; it does not
  drive a disk.
- Images made by `tinyunix-mkfs` are written, not mounted: there is no
  tool to list or read files back out of an image.
- `ls`, `ln`, `rm`, `mkdir` and `kill` act on the host's own file system
  and processes.

## Running the tests

```
pip install .[test]
pytest
```