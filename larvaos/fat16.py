"""Read-only FAT16 file system over a sector-addressed disk."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from .disk import DiskStream
from .errors import Errno, KernelError
from .fstypes import FILE_STAT_READ_ONLY, FileMode, FileStat, SeekMode
from .libc import strcasecmp

FAT16_SIGNATURE = 0x29
FAT16_FAT_ENTRY_SIZE = 0x02

FAT_FILE_READ_ONLY = 0x01
FAT_FILE_HIDDEN = 0x02
FAT_FILE_SYSTEM = 0x04
FAT_FILE_VOLUME_LABEL = 0x08
FAT_FILE_SUBDIRECTORY = 0x10
FAT_FILE_ARCHIVED = 0x20
FAT_FILE_DEVICE = 0x40
FAT_FILE_RESERVED = 0x80

_ENTRY_FREE = 0xE5
_ENTRY_END = 0x00

_BOOT_HEADER = struct.Struct("<3s8sHBHBHHBHHHII")
_EXTENDED_HEADER = struct.Struct("<BBBI11s8s")
_DIRECTORY_ITEM = struct.Struct("<8s3sBBBHHHHHHHI")

# FAT entries that end a cluster chain: end of file, bad or reserved clusters.
_CHAIN_STOPS = frozenset(
    {0x000, 0xFF0, 0xFF6, 0xFF7, 0xFF8, 0xFFF, *range(0xFFF0, 0x10000)}
)


def _proper_string(raw) -> str:
    text = raw.decode("latin-1")
    for terminator in ("\0", " "):
        text = text.split(terminator, 1)[0]
    return text


@dataclass
class DirectoryItem:
    """One 32-byte entry of a FAT directory."""

    filename: bytes = b" " * 8
    ext: bytes = b" " * 3
    attribute: int = 0
    reserved: int = 0
    creation_time_tenths: int = 0
    creation_time: int = 0
    creation_date: int = 0
    last_access: int = 0
    high_cluster: int = 0
    last_mod_time: int = 0
    last_mod_date: int = 0
    low_cluster: int = 0
    filesize: int = 0

    SIZE = _DIRECTORY_ITEM.size

    @classmethod
    def from_bytes(cls, data) -> DirectoryItem:
        """Decode an entry from exactly 32 bytes."""
        if len(data) != _DIRECTORY_ITEM.size:
            raise ValueError(
                f"directory entry needs {_DIRECTORY_ITEM.size} bytes, got {len(data)}"
            )
        return cls(*_DIRECTORY_ITEM.unpack(bytes(data)))

    def to_bytes(self) -> bytes:
        """Encode the entry as its 32 on-disk bytes."""
        return _DIRECTORY_ITEM.pack(
            self.filename.ljust(8, b" ")[:8],
            self.ext.ljust(3, b" ")[:3],
            self.attribute,
            self.reserved,
            self.creation_time_tenths,
            self.creation_time,
            self.creation_date,
            self.last_access,
            self.high_cluster,
            self.last_mod_time,
            self.last_mod_date,
            self.low_cluster,
            self.filesize,
        )

    @property
    def is_free(self) -> bool:
        return self.filename[:1] == bytes([_ENTRY_FREE])

    @property
    def is_end(self) -> bool:
        return self.filename[:1] == bytes([_ENTRY_END])

    @property
    def is_directory(self) -> bool:
        return bool(self.attribute & FAT_FILE_SUBDIRECTORY)

    def full_name(self) -> str:
        """Name and extension joined by a dot, padding removed."""
        name = _proper_string(self.filename)
        if self.ext[:1] not in (b"\0", b" ", b""):
            name += "." + _proper_string(self.ext)
        return name

    def first_cluster(self) -> int:
        """First cluster of the entry's data."""
        return (self.high_cluster << 16) | self.low_cluster


@dataclass
class Fat16File:
    """An open FAT16 file or directory and its read position."""

    item: DirectoryItem
    entries: list[DirectoryItem] | None = None
    pos: int = 0
    closed: bool = field(default=False)

    @property
    def is_directory(self) -> bool:
        return self.entries is not None


class Fat16FileSystem:
    """A FAT16 volume resolved on a disk; raises EIO when the disk is not FAT16."""

    NAME = "FAT16"

    def __init__(self, disk):
        self.disk = disk
        self.name = self.NAME
        self._cluster_stream = DiskStream(disk)
        self._fat_stream = DiskStream(disk)
        self._directory_stream = DiskStream(disk)

        boot = DiskStream(disk).read(_BOOT_HEADER.size + _EXTENDED_HEADER.size)
        header = _BOOT_HEADER.unpack_from(boot)
        extended = _EXTENDED_HEADER.unpack_from(boot, _BOOT_HEADER.size)
        if extended[2] != FAT16_SIGNATURE:
            raise KernelError(Errno.EIO, "disk does not hold a FAT16 file system")

        self.sectors_per_cluster = header[3]
        self.reserved_sectors = header[4]
        self.fat_copies = header[5]
        self.root_dir_entries = header[6]
        self.sectors_per_fat = header[9]
        if self.sectors_per_cluster == 0:
            raise KernelError(Errno.EIO, "FAT16 header has no sectors per cluster")

        self.root = self._load_root_directory()

    @property
    def _sector_size(self) -> int:
        return self.disk.sector_size

    @property
    def _cluster_bytes(self) -> int:
        return self.sectors_per_cluster * self._sector_size

    def _load_root_directory(self) -> list[DirectoryItem]:
        root_sector = self.fat_copies * self.sectors_per_fat + self.reserved_sectors
        root_size = self.root_dir_entries * _DIRECTORY_ITEM.size
        self._directory_stream.seek(root_sector * self._sector_size)
        raw = self._directory_stream.read(root_size)
        self._root_end_sector = root_sector + root_size // self._sector_size
        return self._parse_entries(
            raw[offset:offset + _DIRECTORY_ITEM.size]
            for offset in range(0, root_size, _DIRECTORY_ITEM.size)
        )

    @staticmethod
    def _parse_entries(chunks) -> list[DirectoryItem]:
        items = []
        for chunk in chunks:
            item = DirectoryItem.from_bytes(chunk)
            if item.is_end:
                break
            if not item.is_free:
                items.append(item)
        return items

    def _cluster_to_sector(self, cluster) -> int:
        if cluster < 2:
            raise KernelError(Errno.EIO, f"invalid data cluster {cluster}")
        return self._root_end_sector + (cluster - 2) * self.sectors_per_cluster

    def _fat_entry(self, cluster) -> int:
        fat_start = self.reserved_sectors * self._sector_size
        self._fat_stream.seek(fat_start + cluster * FAT16_FAT_ENTRY_SIZE)
        (entry,) = struct.unpack("<H", self._fat_stream.read(FAT16_FAT_ENTRY_SIZE))
        return entry

    def _cluster_for_offset(self, starting_cluster, offset) -> int:
        cluster = starting_cluster
        for _ in range(offset // self._cluster_bytes):
            entry = self._fat_entry(cluster)
            if entry in _CHAIN_STOPS:
                raise KernelError(Errno.EIO, f"cluster chain ends at cluster {cluster}")
            cluster = entry
        return cluster

    def _read_chain(self, starting_cluster, offset, total) -> bytes:
        chunks = []
        while total > 0:
            cluster = self._cluster_for_offset(starting_cluster, offset)
            within = offset % self._cluster_bytes
            count = min(total, self._cluster_bytes - within)
            start = self._cluster_to_sector(cluster) * self._sector_size + within
            self._cluster_stream.seek(start)
            chunks.append(self._cluster_stream.read(count))
            offset += count
            total -= count
        return b"".join(chunks)

    def _load_directory(self, item) -> list[DirectoryItem]:
        if not item.is_directory:
            raise KernelError(Errno.EINVAL, f"{item.full_name()} is not a directory")

        def chunks():
            offset = 0
            while True:
                try:
                    yield self._read_chain(item.first_cluster(), offset, _DIRECTORY_ITEM.size)
                except KernelError:
                    return
                offset += _DIRECTORY_ITEM.size

        return self._parse_entries(chunks())

    def _find(self, items, name) -> Fat16File | None:
        matches = [item for item in items if strcasecmp(item.full_name(), name) == 0]
        if not matches:
            return None
        item = matches[-1]
        if item.is_directory:
            return Fat16File(item=item, entries=self._load_directory(item))
        return Fat16File(item=DirectoryItem.from_bytes(item.to_bytes()))

    def open(self, parts, mode) -> Fat16File:
        """Open the entry named by path ``parts``; only reading is supported."""
        if FileMode(mode) != FileMode.READ:
            raise KernelError(Errno.EROFS, "FAT16 is mounted read-only")
        parts = list(parts)
        if not parts:
            raise KernelError(Errno.EINVAL, "empty path")
        current = self._find(self.root, parts[0])
        for part in parts[1:]:
            if current is None:
                break
            if not current.is_directory:
                current = None
                break
            current = self._find(current.entries, part)
        if current is None:
            raise KernelError(Errno.EIO, f"no such file: /{'/'.join(parts)}")
        return current

    @staticmethod
    def _check_file(handle) -> DirectoryItem:
        if handle.closed:
            raise KernelError(Errno.EINVAL, "file is closed")
        if handle.is_directory:
            raise KernelError(Errno.EINVAL, "operation needs a file, not a directory")
        return handle.item

    def read(self, handle, size, nmemb) -> bytes:
        """Read ``nmemb`` blocks of ``size`` bytes from the handle's position."""
        item = self._check_file(handle)
        if size < 0 or nmemb < 0:
            raise ValueError(f"invalid read: size={size}, nmemb={nmemb}")
        offset = handle.pos
        chunks = []
        for _ in range(nmemb):
            chunks.append(self._read_chain(item.first_cluster(), offset, size))
            offset += size
        return b"".join(chunks)

    def seek(self, handle, offset, whence) -> int:
        """Move the read position; the offset must lie inside the file."""
        item = self._check_file(handle)
        if offset < 0 or offset >= item.filesize:
            raise KernelError(Errno.EIO, f"offset {offset} is outside the file")
        whence = SeekMode(whence)
        if whence == SeekMode.SET:
            handle.pos = offset
        elif whence == SeekMode.CUR:
            handle.pos += offset
        else:
            raise KernelError(Errno.EINVAL, f"unsupported seek mode {whence.name}")
        return handle.pos

    def stat(self, handle) -> FileStat:
        """Status of an open file."""
        item = self._check_file(handle)
        read_only = item.attribute & FAT_FILE_READ_ONLY
        return FileStat(
            filename=item.filename.decode("latin-1").rstrip(" \0"),
            ext=item.ext.decode("latin-1").rstrip(" \0"),
            attribute=FILE_STAT_READ_ONLY if read_only else 0,
            reserved=item.reserved,
            creation_time=item.creation_time,
            creation_date=item.creation_date,
            last_access=item.last_access,
            last_mod_time=item.last_mod_time,
            last_mod_date=item.last_mod_date,
            filesize=item.filesize,
        )

    def close(self, handle) -> None:
        """Release an open handle."""
        if handle.closed:
            raise KernelError(Errno.EINVAL, "file is already closed")
        handle.closed = True
        handle.entries = handle.entries and None