"""Interrupt descriptor table entries, the table and its register image."""

from __future__ import annotations

import struct

from .errors import Errno, KernelError

TOTAL_INTERRUPTS = 512
KERNEL_CODE_SELECTOR = 0x08
KERNEL_DATA_SELECTOR = 0x10

DIVIDE_BY_ZERO_INTERRUPT_NUMBER = 0x00
SYSTEM_CALL_INTERRUPT_NUMBER = 0x80

# 32-bit interrupt gate, present, callable from ring 3.
INTERRUPT_GATE_32 = 0xEE

_IDT_ENTRY = struct.Struct("<HHBBH")
_IDTR = struct.Struct("<HI")
IDT_ENTRY_SIZE = _IDT_ENTRY.size
_UINT32_MAX = 0xFFFFFFFF


def _check_address(address) -> int:
    address = int(address)
    if not 0 <= address <= _UINT32_MAX:
        raise ValueError(f"handler address {address:#x} does not fit in 32 bits")
    return address


def encode_idt_entry(address, selector=KERNEL_CODE_SELECTOR, type_attributes=INTERRUPT_GATE_32) -> bytes:
    """The 8-byte gate descriptor for a handler at ``address``."""
    address = _check_address(address)
    return _IDT_ENTRY.pack(address & 0xFFFF, selector, 0x00, type_attributes, address >> 16)


class InterruptDescriptorTable:
    """A table of handler addresses, one for every interrupt number."""

    def __init__(self, default_handler):
        default_handler = _check_address(default_handler)
        self._handlers = [default_handler] * TOTAL_INTERRUPTS

    def __len__(self):
        return len(self._handlers)

    def _check_number(self, number) -> None:
        if not 0 <= number < TOTAL_INTERRUPTS:
            raise KernelError(Errno.EINVAL, f"interrupt number {number} is out of range")

    def set_handler(self, number, address) -> None:
        """Route interrupt ``number`` to the handler at ``address``."""
        self._check_number(number)
        self._handlers[number] = _check_address(address)

    def handler(self, number) -> int:
        """Address of the handler for interrupt ``number``."""
        self._check_number(number)
        return self._handlers[number]

    def encode(self) -> bytes:
        """The whole table as the processor reads it."""
        return b"".join(encode_idt_entry(address) for address in self._handlers)

    def register(self, base) -> bytes:
        """The 6-byte table register: size less one, then the table's address."""
        base = _check_address(base)
        return _IDTR.pack(len(self._handlers) * IDT_ENTRY_SIZE - 1, base)