"""Virtual file system: file-system registry, descriptors and a file object."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import Errno, KernelError, panic
from .fat16 import Fat16FileSystem
from .fstypes import (
    MAX_FILE_DESCRIPTORS,
    MAX_FILESYSTEMS,
    FileMode,
    SeekMode,
    file_mode_from_string,
)
from .pathparser import parse_path


@dataclass
class _Descriptor:
    index: int
    filesystem: object
    disk: object
    handle: object


class VirtualFileSystem:
    """Registry of file systems and the table of open file descriptors."""

    def __init__(self):
        self._filesystems = []
        self._descriptors = [None] * MAX_FILE_DESCRIPTORS
        self._disks = {}
        self.insert_filesystem(Fat16FileSystem.NAME, Fat16FileSystem)

    @property
    def filesystem_names(self) -> list[str]:
        """Names of the registered file systems, in resolution order."""
        return [name for name, _ in self._filesystems]

    @property
    def disk(self):
        """The primary disk (id 0), or None when none has been resolved."""
        return self._disks.get(0)

    def insert_filesystem(self, name, factory) -> None:
        """Register a file system; ``factory(disk)`` mounts it or raises KernelError."""
        if len(self._filesystems) >= MAX_FILESYSTEMS:
            panic(f"Failed to insert filesystem: {name}")
        self._filesystems.append((name, factory))

    def resolve(self, disk):
        """Bind the first file system that recognises ``disk`` to it."""
        self._disks[disk.id] = disk
        for _, factory in self._filesystems:
            try:
                filesystem = factory(disk)
            except KernelError:
                continue
            disk.filesystem = filesystem
            return filesystem
        disk.filesystem = None
        return None

    def _descriptor(self, fd) -> _Descriptor:
        if fd <= 0 or fd >= MAX_FILE_DESCRIPTORS:
            raise KernelError(Errno.EINVAL, f"bad file descriptor {fd}")
        descriptor = self._descriptors[fd - 1]
        if descriptor is None:
            raise KernelError(Errno.EINVAL, f"file descriptor {fd} is not open")
        return descriptor

    def fopen(self, path, mode="r") -> int:
        """Open ``path`` on disk 0; returns a descriptor starting at 1."""
        parts = parse_path(path)
        disk = self._disks.get(0)
        if disk is None:
            raise KernelError(Errno.EIO, "no disk is attached")
        filesystem = disk.filesystem
        if filesystem is None:
            raise KernelError(Errno.EIO, "the disk has no file system")
        file_mode = file_mode_from_string(mode)
        if file_mode == FileMode.INVALID:
            raise KernelError(Errno.EINVAL, f"invalid open mode {mode!r}")

        handle = filesystem.open(parts, file_mode)
        try:
            slot = self._descriptors.index(None)
        except ValueError:
            filesystem.close(handle)
            raise KernelError(Errno.ENOMEM, "no free file descriptors") from None
        fd = slot + 1
        self._descriptors[slot] = _Descriptor(fd, filesystem, disk, handle)
        return fd

    def fread(self, fd, size, nmemb=1) -> bytes:
        """Read ``nmemb`` blocks of ``size`` bytes from an open file."""
        if fd < 1 or size == 0 or nmemb == 0:
            raise KernelError(Errno.EINVAL, "invalid read request")
        descriptor = self._descriptor(fd)
        return descriptor.filesystem.read(descriptor.handle, size, nmemb)

    def fseek(self, fd, offset, whence=SeekMode.SET) -> int:
        """Move the position of an open file; returns the new position."""
        descriptor = self._descriptor(fd)
        return descriptor.filesystem.seek(descriptor.handle, offset, whence)

    def fstat(self, fd):
        """Status of an open file."""
        descriptor = self._descriptor(fd)
        return descriptor.filesystem.stat(descriptor.handle)

    def fclose(self, fd) -> None:
        """Close an open file and free its descriptor."""
        descriptor = self._descriptor(fd)
        descriptor.filesystem.close(descriptor.handle)
        self._descriptors[descriptor.index - 1] = None


_MODE_STRINGS = {
    FileMode.READ: "r",
    FileMode.WRITE: "w",
    FileMode.APPEND: "a",
}


class File:
    """A named file that opens lazily and closes on leaving a ``with`` block."""

    def __init__(self, vfs, name="", mode=FileMode.READ):
        self.vfs = vfs
        self.name = name
        self.mode = FileMode(mode)
        self.fd = 0
        self.stat = None

    def open(self) -> None:
        """Open the file unless it is already open."""
        if self.is_open():
            return
        self.fd = self.vfs.fopen(self.name, _MODE_STRINGS.get(self.mode, "r"))
        try:
            self.stat = self.vfs.fstat(self.fd)
        except KernelError:
            self.stat = None

    def is_open(self) -> bool:
        """True while the file holds a descriptor."""
        return self.fd > 0

    def size(self) -> int:
        """Size of the file in bytes, as reported when it was opened."""
        return self.stat.filesize if self.stat is not None else 0

    def seekg(self, pos, mode=SeekMode.SET) -> None:
        """Move the read position; does nothing when the file is closed."""
        if not self.is_open():
            return
        self.vfs.fseek(self.fd, pos, mode)

    def read(self, size, nmemb=1) -> bytes:
        """Read ``nmemb`` blocks of ``size`` bytes; empty when the file is closed."""
        if not self.is_open():
            return b""
        return self.vfs.fread(self.fd, size, nmemb)

    def close(self) -> None:
        """Close the file; does nothing when it is already closed."""
        if not self.is_open():
            return
        self.vfs.fclose(self.fd)
        self.fd = 0

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False