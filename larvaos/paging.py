"""Paged 4 GiB address spaces: alignment, page indexes and page mappings."""

from __future__ import annotations

from enum import IntFlag

from .errors import Errno, KernelError

PAGING_TOTAL_ENTRIES_PER_TABLE = 1024
PAGING_PAGE_SIZE = 4096

_TABLE_SPAN = PAGING_TOTAL_ENTRIES_PER_TABLE * PAGING_PAGE_SIZE
_ADDRESS_SPACE_SIZE = PAGING_TOTAL_ENTRIES_PER_TABLE * _TABLE_SPAN
_UINT32_MASK = 0xFFFFFFFF


class PageFlags(IntFlag):
    """Flag bits of a page directory or page table entry."""

    IS_PRESENT = 0b00000001
    IS_WRITEABLE = 0b00000010
    ACCESS_FROM_ALL = 0b00000100
    WRITE_THROUGH = 0b00001000
    CACHE_DISABLED = 0b00010000


def is_aligned(address) -> bool:
    """True when ``address`` lies on a page boundary."""
    return address % PAGING_PAGE_SIZE == 0


def align_address(address) -> int:
    """Round ``address`` up to the next page boundary."""
    remainder = address % PAGING_PAGE_SIZE
    if remainder:
        return address + PAGING_PAGE_SIZE - remainder
    return address


def page_indexes(address) -> tuple[int, int]:
    """Directory index and table index of a page-aligned virtual address."""
    if not is_aligned(address):
        raise KernelError(Errno.EINVAL, f"address {address:#x} is not page aligned")
    if not 0 <= address < _ADDRESS_SPACE_SIZE:
        raise KernelError(Errno.EINVAL, f"address {address:#x} is outside 4 GiB")
    directory_index, rest = divmod(address, _TABLE_SPAN)
    return directory_index, rest // PAGING_PAGE_SIZE


class AddressSpace:
    """A 4 GiB virtual address space that starts out mapped onto itself."""

    def __init__(self, flags):
        self.flags = int(flags) & 0xFF
        self._overrides: dict[tuple[int, int], int] = {}

    def entry_of(self, virt) -> int:
        """Page table entry that maps the page at ``virt``."""
        directory_index, table_index = page_indexes(virt)
        key = (directory_index, table_index)
        if key in self._overrides:
            return self._overrides[key]
        return virt | self.flags

    def set_entry(self, virt, value) -> None:
        """Store ``value`` as the page table entry for the page at ``virt``."""
        key = page_indexes(virt)
        self._overrides[key] = value & _UINT32_MASK

    def map_page(self, virt, phys, flags) -> None:
        """Map the page at ``virt`` onto physical page ``phys``."""
        if not (is_aligned(virt) and is_aligned(phys)):
            raise KernelError(Errno.EINVAL, "page mapping addresses must be aligned")
        self.set_entry(virt, phys | int(flags))

    def map_range(self, virt, phys, phys_end, flags) -> int:
        """Map pages from ``virt`` onto ``phys`` up to ``phys_end``; returns the page count."""
        if not (is_aligned(virt) and is_aligned(phys) and is_aligned(phys_end)):
            raise KernelError(Errno.EINVAL, "range addresses must be page aligned")
        if phys_end < phys:
            raise KernelError(Errno.EINVAL, "physical range ends before it starts")
        total_pages = (phys_end - phys) // PAGING_PAGE_SIZE
        for page in range(total_pages):
            offset = page * PAGING_PAGE_SIZE
            self.map_page(virt + offset, phys + offset, flags)
        return total_pages