"""The kernel: boot sequence, task-state segment and system call entry."""

from __future__ import annotations

import argparse
import struct
import sys
from dataclasses import dataclass

from .disk import Disk
from .errors import KernelError, KernelPanic, panic
from .gdt import default_gdt, encode_gdt
from .interrupts import (
    DIVIDE_BY_ZERO_INTERRUPT_NUMBER,
    KERNEL_DATA_SELECTOR,
    SYSTEM_CALL_INTERRUPT_NUMBER,
    InterruptDescriptorTable,
)
from .paging import AddressSpace, PageFlags
from .process import ProcessTable
from .syscalls import SyscallArgs, SyscallTable
from .task import TaskList
from .vfs import VirtualFileSystem
from .video import TextScreen, VgaColor, endl

DEFAULT_PROGRAM = "/loop.bin"
KERNEL_STACK_ADDRESS = 0x600000
TSS_SELECTOR = 0x28

_TSS_FORMAT = struct.Struct("<HHIHHIHHIHHI10I12H4H")
TSS_SIZE = _TSS_FORMAT.size

_ROUTINES = ("no_interrupt", "divide_by_zero", "syscall_wrapper")


@dataclass
class TaskStateSegment:
    """The processor's task-state segment; only the ring 0 stack is used."""

    previous_task: int = 0
    esp0: int = 0
    ss0: int = 0
    esp1: int = 0
    ss1: int = 0
    esp2: int = 0
    ss2: int = 0
    cr3: int = 0
    eip: int = 0
    eflags: int = 0
    eax: int = 0
    ecx: int = 0
    edx: int = 0
    ebx: int = 0
    esp: int = 0
    ebp: int = 0
    esi: int = 0
    edi: int = 0
    es: int = 0
    cs: int = 0
    ss: int = 0
    ds: int = 0
    fs: int = 0
    gs: int = 0
    ldt_selector: int = 0
    debug_flag: int = 0
    io_map: int = 0

    def encode(self) -> bytes:
        """The packed 104-byte segment, reserved halves zeroed."""
        return _TSS_FORMAT.pack(
            self.previous_task, 0, self.esp0,
            self.ss0, 0, self.esp1,
            self.ss1, 0, self.esp2,
            self.ss2, 0, self.cr3,
            self.eip, self.eflags, self.eax, self.ecx, self.edx,
            self.ebx, self.esp, self.ebp, self.esi, self.edi,
            self.es, 0, self.cs, 0, self.ss, 0,
            self.ds, 0, self.fs, 0, self.gs, 0,
            self.ldt_selector, 0, self.debug_flag, self.io_map,
        )


class Kernel:
    """A machine with one disk image, brought up by :meth:`boot`."""

    def __init__(self, image):
        self.screen = TextScreen()
        self.disk = Disk(image, 0)
        self.vfs = VirtualFileSystem()
        self.tasks = TaskList()
        self.processes = ProcessTable(self.vfs, self.tasks)
        self.syscalls = SyscallTable()
        self.tss = TaskStateSegment()
        self.tss_address = None
        self.gdt = b""
        self.idt = None
        self.idt_register = b""
        self.routines: dict[str, int] = {}
        self.task_register = None
        self.kernel_space = None
        self.paging_enabled = False
        self.interrupts_enabled = True
        self.current_process = None

    @property
    def heap(self):
        """The kernel heap."""
        return self.processes.heap

    def _initialize_gdt(self) -> None:
        self.tss_address = self.heap.malloc(TSS_SIZE)
        self.gdt = encode_gdt(default_gdt(self.tss_address, TSS_SIZE))

    def _initialize_idt(self) -> None:
        self.routines = {name: self.heap.malloc(1) for name in _ROUTINES}
        idt = InterruptDescriptorTable(self.routines["no_interrupt"])
        idt.set_handler(DIVIDE_BY_ZERO_INTERRUPT_NUMBER, self.routines["divide_by_zero"])
        idt.set_handler(SYSTEM_CALL_INTERRUPT_NUMBER, self.routines["syscall_wrapper"])
        table_address = self.heap.malloc(len(idt.encode()))
        self.idt = idt
        self.idt_register = idt.register(table_address)

    def _initialize_tss(self) -> None:
        self.tss = TaskStateSegment(esp0=KERNEL_STACK_ADDRESS, ss0=KERNEL_DATA_SELECTOR)
        self.task_register = TSS_SELECTOR

    def _initialize_vm(self) -> None:
        self.kernel_space = AddressSpace(
            PageFlags.IS_WRITEABLE | PageFlags.IS_PRESENT | PageFlags.ACCESS_FROM_ALL
        )
        self.tasks.active_space = self.kernel_space
        self.paging_enabled = True

    def _load_program(self, program):
        try:
            process = self.processes.load(program)
        except KernelError:
            return None
        self.current_process = process
        self.screen << "Load success process: " << program << "with pid: " << process.id << endl
        return process

    def boot(self, program=DEFAULT_PROGRAM):
        """Bring every subsystem up and load ``program``; returns its process or None."""
        self.screen << VgaColor.GREEN << "Welcome to Larva OS." << endl
        self.interrupts_enabled = False
        self._initialize_gdt()
        self.vfs.resolve(self.disk)
        self._initialize_idt()
        self._initialize_tss()
        self._initialize_vm()
        self.syscalls.initialize()
        return self._load_program(program)

    def syscall(self, number, frame, stack=()):
        """Handle system call ``number`` raised with ``frame``; ``stack`` holds the user's argument words."""
        self.tasks.active_space = self.kernel_space
        task = self.tasks.current
        if task is None:
            panic("No current task to save.")
        self.tasks.save_state(task, frame)
        args = SyscallArgs(stack)
        result = self.syscalls.call(number, args)
        self.tasks.switch(task)
        return result


def _screen_lines(screen) -> list[str]:
    lines = [screen.row_text(y) for y in range(screen.height)]
    while lines and not lines[-1]:
        lines.pop()
    return lines


def main(argv=None) -> int:
    """Boot a disk image and print what the kernel shows on screen."""
    parser = argparse.ArgumentParser(prog="larvaos", description="Boot a FAT16 disk image.")
    parser.add_argument("image", help="path of the disk image")
    parser.add_argument("--program", default=DEFAULT_PROGRAM, help="program to load")
    options = parser.parse_args(argv)

    try:
        with open(options.image, "rb") as handle:
            image = handle.read()
    except OSError as error:
        print(f"larvaos: {error}", file=sys.stderr)
        return 1

    kernel = Kernel(image)
    try:
        kernel.boot(options.program)
    except KernelPanic as error:
        print("\n".join(_screen_lines(kernel.screen)))
        print(str(error), file=sys.stderr)
        return 1

    print("\n".join(_screen_lines(kernel.screen)))
    return 0