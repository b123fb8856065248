"""A small x86 teaching kernel: heap, paging, descriptor tables, FAT16, VFS, tasks and system calls."""

__version__ = "0.1.0"