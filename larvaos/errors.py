"""Kernel error numbers, recoverable kernel errors and panics."""

from __future__ import annotations

from enum import IntEnum

MAX_ERRNO = 4095


class Errno(IntEnum):
    """Error numbers reported by kernel services."""

    EPERM = 1
    ENOENT = 2
    ESRCH = 3
    EIO = 5
    ENOMEM = 12
    EINVAL = 22
    EROFS = 30


class KernelError(Exception):
    """A kernel operation failed with an error number."""

    def __init__(self, errno, message=""):
        self.errno = Errno(errno)
        self.message = message
        text = f"[{self.errno.name}] {message}" if message else self.errno.name
        super().__init__(text)


class KernelPanic(Exception):
    """An unrecoverable kernel failure; the system cannot continue."""

    def __init__(self, message):
        self.message = message
        super().__init__(f"PANIC: {message}")


def panic(message):
    """Halt the kernel by raising :class:`KernelPanic` with ``message``."""
    raise KernelPanic(message)