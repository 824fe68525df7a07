"""Pieces of a small Unix: file system images, page tables, formats, a shell parser and tools."""

__version__ = "0.1.0"