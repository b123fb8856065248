"""Block-table heap allocator and the kernel heap layout."""

from __future__ import annotations

from .errors import Errno, KernelError

HEAP_BLOCK_TABLE_ENTRY_FREE = 0x00
HEAP_BLOCK_TABLE_ENTRY_TAKEN = 0x01
HEAP_BLOCK_HAS_NEXT = 0b10000000
HEAP_BLOCK_IS_FIRST = 0b01000000
HEAP_BLOCK_SIZE_BYTES = 0x00001000
HEAP_TABLE_ADDRESS = 0x00007E00

KERNEL_HEAP_SIZE_BYTES = 0x06400000
KERNEL_HEAP_START_ADDRESS = 0x01000000

_ENTRY_TYPE_MASK = 0x0F


def _aligned(address) -> bool:
    return address % HEAP_BLOCK_SIZE_BYTES == 0


class Heap:
    """A heap of fixed-size blocks tracked by a one-byte-per-block table."""

    def __init__(self, start, end, total):
        if not (_aligned(start) and _aligned(end)):
            raise KernelError(Errno.EINVAL, "heap bounds are not block aligned")
        if total != (end - start) // HEAP_BLOCK_SIZE_BYTES:
            raise KernelError(Errno.EINVAL, "table size does not match the heap")
        self.start = start
        self.end = end
        self.entries = bytearray([HEAP_BLOCK_TABLE_ENTRY_FREE]) * total

    @property
    def total(self) -> int:
        return len(self.entries)

    def _check_block(self, number) -> None:
        if not 0 <= number < self.total:
            raise KernelError(Errno.EINVAL, f"block {number} is out of range")

    def address_of_block(self, number) -> int:
        """Address of the first byte of block ``number``."""
        self._check_block(number)
        return self.start + number * HEAP_BLOCK_SIZE_BYTES

    def block_of_address(self, address) -> int:
        """Number of the block that holds ``address``."""
        return (address - self.start) // HEAP_BLOCK_SIZE_BYTES

    def find_free_blocks(self, count) -> int:
        """First block of the earliest run of ``count`` free blocks."""
        run_start = None
        run_length = 0
        for number, entry in enumerate(self.entries):
            if entry & _ENTRY_TYPE_MASK == HEAP_BLOCK_TABLE_ENTRY_FREE:
                if run_start is None:
                    run_start = number
                run_length += 1
                if run_length == count:
                    return run_start
            else:
                run_start = None
                run_length = 0
        raise KernelError(Errno.ENOMEM, f"no run of {count} free blocks")

    def mark_taken(self, start_block, count) -> None:
        """Mark ``count`` blocks from ``start_block`` as one allocation."""
        self._check_block(start_block)
        end_block = min(start_block + count - 1, self.total - 1)
        first = HEAP_BLOCK_TABLE_ENTRY_TAKEN | HEAP_BLOCK_IS_FIRST
        if count > 1:
            first |= HEAP_BLOCK_HAS_NEXT
        self.entries[start_block] = first
        for number in range(start_block + 1, end_block + 1):
            entry = HEAP_BLOCK_TABLE_ENTRY_TAKEN
            if number != end_block:
                entry |= HEAP_BLOCK_HAS_NEXT
            self.entries[number] = entry

    def mark_free(self, number) -> None:
        """Free the whole allocation that block ``number`` belongs to."""
        self._check_block(number)
        first = number
        while first > 0 and not self.entries[first] & HEAP_BLOCK_IS_FIRST:
            first -= 1
        for block in range(first, self.total):
            entry = self.entries[block]
            self.entries[block] = HEAP_BLOCK_TABLE_ENTRY_FREE
            if not entry & HEAP_BLOCK_HAS_NEXT:
                break

    def malloc(self, size) -> int:
        """Allocate whole blocks covering ``size`` bytes; return the address."""
        blocks = -(-size // HEAP_BLOCK_SIZE_BYTES)
        start_block = self.find_free_blocks(blocks)
        address = self.address_of_block(start_block)
        self.mark_taken(start_block, blocks)
        return address

    def free(self, address) -> None:
        """Release the allocation that starts at ``address``."""
        self.mark_free(self.block_of_address(address))


def make_kernel_heap() -> Heap:
    """The kernel heap: 100 MiB of blocks starting at 16 MiB."""
    return Heap(
        KERNEL_HEAP_START_ADDRESS,
        KERNEL_HEAP_START_ADDRESS + KERNEL_HEAP_SIZE_BYTES,
        KERNEL_HEAP_SIZE_BYTES // HEAP_BLOCK_SIZE_BYTES,
    )