"""Tasks, their saved register state and the round-robin task list."""

from __future__ import annotations

from dataclasses import dataclass, field, fields

from .errors import panic
from .paging import AddressSpace, PageFlags

PROGRAM_VIRTUAL_ADDRESS = 0x400000
USER_PROGRAM_STACK_SIZE = 1024 * 16
PROGRAM_VIRTUAL_STACK_ADDRESS_START = 0x3FF000
PROGRAM_VIRTUAL_STACK_ADDRESS_END = PROGRAM_VIRTUAL_STACK_ADDRESS_START - USER_PROGRAM_STACK_SIZE

USER_DATA_SEGMENT = 0x23
USER_CODE_SEGMENT = 0x1B


@dataclass
class Registers:
    """Processor registers of a task that is not running."""

    edi: int = 0
    esi: int = 0
    ebp: int = 0
    ebx: int = 0
    edx: int = 0
    ecx: int = 0
    eax: int = 0
    ip: int = 0
    cs: int = 0
    flags: int = 0
    esp: int = 0
    ss: int = 0


@dataclass
class InterruptFrame:
    """Registers pushed on entry to an interrupt handler."""

    edi: int = 0
    esi: int = 0
    ebp: int = 0
    reserved: int = 0
    ebx: int = 0
    edx: int = 0
    ecx: int = 0
    eax: int = 0
    ip: int = 0
    cs: int = 0
    flags: int = 0
    esp: int = 0
    ss: int = 0


@dataclass(eq=False)
class Task:
    """A schedulable task with its own address space."""

    page_directory: AddressSpace
    registers: Registers = field(default_factory=Registers)
    process: object = field(default=None, repr=False)


_REGISTER_NAMES = tuple(f.name for f in fields(Registers))


class TaskList:
    """All tasks in creation order, with the current one and the active space."""

    def __init__(self):
        self._tasks: list[Task] = []
        self.current: Task | None = None
        self.active_space: AddressSpace | None = None

    def __len__(self):
        return len(self._tasks)

    def make_task(self, process) -> Task:
        """Create a task for ``process`` at the end of the list."""
        space = AddressSpace(PageFlags.IS_PRESENT | PageFlags.ACCESS_FROM_ALL)
        registers = Registers(
            ip=PROGRAM_VIRTUAL_ADDRESS,
            ss=USER_DATA_SEGMENT,
            cs=USER_CODE_SEGMENT,
            esp=PROGRAM_VIRTUAL_STACK_ADDRESS_START,
        )
        task = Task(page_directory=space, registers=registers, process=process)
        if not self._tasks:
            self.current = task
        self._tasks.append(task)
        return task

    def release(self, task) -> None:
        """Remove ``task``; if it was current, the task after it becomes current."""
        if task not in self._tasks:
            return
        position = self._tasks.index(task)
        self._tasks.remove(task)
        if task is self.current:
            if position < len(self._tasks):
                self.current = self._tasks[position]
            else:
                self.current = self._tasks[0] if self._tasks else None

    def next_task(self) -> Task:
        """Task after the current one, wrapping to the first."""
        if self.current is None:
            panic("No current task exist!")
        position = self._tasks.index(self.current)
        if position + 1 < len(self._tasks):
            return self._tasks[position + 1]
        return self._tasks[0]

    def switch(self, task) -> None:
        """Make ``task`` current and load its address space."""
        self.current = task
        self.active_space = task.page_directory

    def save_state(self, task, frame) -> None:
        """Copy the registers of an interrupt frame into ``task``."""
        for name in _REGISTER_NAMES:
            setattr(task.registers, name, getattr(frame, name))

    def __iter__(self):
        return iter(list(self._tasks))