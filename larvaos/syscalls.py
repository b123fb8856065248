"""System call numbers, arguments and the dispatch table."""

from __future__ import annotations

from enum import IntEnum

from .errors import panic

MAXIMUM_NUMBER_OF_SYSCALL_ARGS = 5
MAXIMUM_NUMBER_OF_SYSCALLS = 100
_UINT32_MASK = 0xFFFFFFFF


class SyscallEntry(IntEnum):
    """Numbers of the known system calls."""

    ZERO = 0
    EXIT = 1
    FORK = 2
    READ = 3
    WRITE = 4
    CLOSE = 6
    OPEN = 45


class SyscallArgs:
    """The five 32-bit argument words a task passes to a system call."""

    def __init__(self, values=()):
        words = [value & _UINT32_MASK for value in list(values)[:MAXIMUM_NUMBER_OF_SYSCALL_ARGS]]
        words.extend([0] * (MAXIMUM_NUMBER_OF_SYSCALL_ARGS - len(words)))
        self.values = tuple(words)

    def get(self, n) -> int:
        """Argument ``n``; zero when ``n`` is outside the argument words."""
        if 0 <= n < MAXIMUM_NUMBER_OF_SYSCALL_ARGS:
            return self.values[n]
        return 0

    def __repr__(self):
        return f"SyscallArgs({list(self.values)!r})"


def sys_zero(args):
    """The null system call: does nothing and returns nothing."""
    return None


class SyscallTable:
    """Maps system call numbers to their handlers."""

    def __init__(self):
        self._calls = {}

    def initialize(self) -> None:
        """Register the kernel's built-in system calls."""
        self.add(SyscallEntry.ZERO, sys_zero)

    @staticmethod
    def _in_range(num) -> bool:
        return 0 <= num < MAXIMUM_NUMBER_OF_SYSCALLS

    def add(self, num, handler) -> None:
        """Register ``handler`` for ``num``; panics when out of range or taken."""
        if not self._in_range(num):
            panic("The syscall number is out of bounds.")
        if num in self._calls:
            panic("Handler of the syscall number is existing.")
        self._calls[int(num)] = handler

    def call(self, num, args):
        """Run the handler for ``num``; None when there is no such handler."""
        if not self._in_range(num):
            return None
        handler = self._calls.get(int(num))
        if handler is None:
            return None
        return handler(args)