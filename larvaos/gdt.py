"""Global descriptor table entries and their 8-byte encoding."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import panic

TOTAL_GDT_SEGMENTS = 6
_PAGE_GRANULARITY_LIMIT = 0x10000


@dataclass(frozen=True)
class SegmentDescriptor:
    """A protected-mode segment: base address, limit and access byte."""

    base: int
    limit: int
    access: int

    def encode(self) -> bytes:
        """The 8-byte descriptor as the processor reads it."""
        limit = self.limit
        if limit > _PAGE_GRANULARITY_LIMIT and (limit & 0xFFF) != 0xFFF:
            panic("Can not load GDT entry!")

        flags = 0x40
        if limit > _PAGE_GRANULARITY_LIMIT:
            limit >>= 12
            flags = 0xC0

        base = self.base
        return bytes(
            [
                limit & 0xFF,
                (limit >> 8) & 0xFF,
                base & 0xFF,
                (base >> 8) & 0xFF,
                (base >> 16) & 0xFF,
                self.access & 0xFF,
                flags | ((limit >> 16) & 0x0F),
                (base >> 24) & 0xFF,
            ]
        )


def encode_gdt(descriptors) -> bytes:
    """Encode descriptors one after another into a table."""
    return b"".join(descriptor.encode() for descriptor in descriptors)


def default_gdt(tss_base, tss_limit) -> list[SegmentDescriptor]:
    """Null, kernel code/data, user code/data and task-state segments."""
    return [
        SegmentDescriptor(base=0x00, limit=0x00, access=0x00),
        SegmentDescriptor(base=0x00, limit=0xFFFFFFFF, access=0x9A),
        SegmentDescriptor(base=0x00, limit=0xFFFFFFFF, access=0x92),
        SegmentDescriptor(base=0x00, limit=0xFFFFFFFF, access=0xF8),
        SegmentDescriptor(base=0x00, limit=0xFFFFFFFF, access=0xF2),
        SegmentDescriptor(base=tss_base, limit=tss_limit, access=0xE9),
    ]