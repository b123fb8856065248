"""User processes: loading a program binary into memory and a task."""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import Errno, KernelError
from .heap import make_kernel_heap
from .paging import PageFlags, align_address
from .pathparser import MAX_PATH_LENGTH
from .task import PROGRAM_VIRTUAL_ADDRESS, USER_PROGRAM_STACK_SIZE

MAX_PROGRAM_ALLOCATIONS = 1024
MAX_PROCESSES = 20

_PROGRAM_FLAGS = PageFlags.IS_PRESENT | PageFlags.ACCESS_FROM_ALL | PageFlags.IS_WRITEABLE


@dataclass(eq=False)
class Process:
    """A loaded program: its binary, memory and main task."""

    id: int
    binary_file: str
    data: bytes
    physical_address: int
    stack_address: int
    task: object = field(default=None, repr=False)
    memory_allocations: list[int] = field(default_factory=list, repr=False)

    @property
    def size(self) -> int:
        """Size of the program binary in bytes."""
        return len(self.data)


class ProcessTable:
    """Fixed table of process slots backed by a file system and a task list."""

    def __init__(self, vfs, tasks):
        self.vfs = vfs
        self.tasks = tasks
        self.heap = make_kernel_heap()
        self._processes: list[Process | None] = [None] * MAX_PROCESSES

    def get(self, pid) -> Process | None:
        """Process in slot ``pid``, or None when empty or out of range."""
        if not 0 <= pid < MAX_PROCESSES:
            return None
        return self._processes[pid]

    def free_slot(self) -> int:
        """Lowest empty slot; raises ENOMEM when every slot is used."""
        for slot, process in enumerate(self._processes):
            if process is None:
                return slot
        raise KernelError(Errno.ENOMEM, "no free process slot")

    def _load_binary(self, filename) -> bytes:
        try:
            fd = self.vfs.fopen(filename, "r")
        except KernelError as error:
            raise KernelError(Errno.EIO, f"cannot open {filename}") from error
        try:
            stat = self.vfs.fstat(fd)
            try:
                return self.vfs.fread(fd, stat.filesize, 1)
            except KernelError as error:
                raise KernelError(Errno.EIO, f"cannot read {filename}") from error
        finally:
            self.vfs.fclose(fd)

    def load_into_slot(self, filename, slot) -> Process:
        """Load ``filename`` as the process in ``slot``."""
        if not 0 <= slot < MAX_PROCESSES:
            raise KernelError(Errno.EINVAL, f"process slot {slot} is out of range")
        if self._processes[slot] is not None:
            raise KernelError(Errno.ESRCH, f"process slot {slot} is taken")

        data = self._load_binary(filename)
        allocations: list[int] = []
        task = None
        try:
            physical = self.heap.malloc(len(data))
            allocations.append(physical)
            stack = self.heap.malloc(USER_PROGRAM_STACK_SIZE)
            allocations.append(stack)
            process = Process(
                id=slot,
                binary_file=filename[:MAX_PATH_LENGTH],
                data=bytes(data),
                physical_address=physical,
                stack_address=stack,
            )
            task = self.tasks.make_task(process)
            process.task = task
            task.page_directory.map_range(
                PROGRAM_VIRTUAL_ADDRESS,
                physical,
                align_address(physical + len(data)),
                _PROGRAM_FLAGS,
            )
        except KernelError:
            if task is not None:
                self.tasks.release(task)
            for address in allocations:
                self.heap.free(address)
            raise

        self._processes[slot] = process
        return process

    def load(self, filename) -> Process:
        """Load ``filename`` into the lowest free slot."""
        return self.load_into_slot(filename, self.free_slot())