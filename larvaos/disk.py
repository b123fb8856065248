"""A sector-addressed disk backed by an image, and a byte stream over it."""

from __future__ import annotations

DISK_SECTOR_SIZE = 512
PHYSICAL_HARD_DISK_TYPE = 0


class Disk:
    """A hard disk whose contents are an in-memory image."""

    def __init__(self, image, disk_id=0):
        self.image = bytes(image)
        self.id = disk_id
        self.type = PHYSICAL_HARD_DISK_TYPE
        self.sector_size = DISK_SECTOR_SIZE
        self.filesystem = None

    def read_sectors(self, lba, count) -> bytes:
        """Read ``count`` whole sectors from ``lba``; unwritten space reads as zeros."""
        if lba < 0 or count < 0:
            raise ValueError(f"invalid sector range: lba={lba}, count={count}")
        start = lba * self.sector_size
        length = count * self.sector_size
        data = self.image[start:start + length]
        return data + bytes(length - len(data))


class DiskStream:
    """A byte-positioned reader over a disk."""

    def __init__(self, disk):
        self.disk = disk
        self.pos = 0

    def seek(self, pos) -> None:
        """Move the stream to absolute byte ``pos``."""
        if pos < 0:
            raise ValueError(f"negative stream position: {pos}")
        self.pos = pos

    def read(self, total) -> bytes:
        """Read ``total`` bytes from the current position and advance past them."""
        if total < 0:
            raise ValueError(f"negative read length: {total}")
        size = self.disk.sector_size
        first_sector, offset = divmod(self.pos, size)
        sectors = -(-(offset + total) // size)
        data = self.disk.read_sectors(first_sector, sectors)[offset:offset + total]
        self.pos += total
        return data