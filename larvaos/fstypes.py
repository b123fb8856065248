"""Shared file-system types: open and seek modes and file status."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

MAX_FILESYSTEMS = 12
MAX_FILE_DESCRIPTORS = 512
FILE_STAT_READ_ONLY = 0x01


class SeekMode(IntEnum):
    """Origin of a seek offset."""

    SET = 0
    CUR = 1
    END = 2


class FileMode(IntEnum):
    """Mode a file is opened in."""

    READ = 0
    WRITE = 1
    APPEND = 2
    INVALID = 3


@dataclass
class FileStat:
    """Status of an open file as reported by its file system."""

    flags: int = 0
    filename: str = ""
    ext: str = ""
    attribute: int = 0
    reserved: int = 0
    creation_time: int = 0
    creation_date: int = 0
    last_access: int = 0
    last_mod_time: int = 0
    last_mod_date: int = 0
    filesize: int = 0

    @property
    def read_only(self) -> bool:
        """True when the read-only attribute is set."""
        return bool(self.attribute & FILE_STAT_READ_ONLY)


_MODE_LETTERS = {
    "r": FileMode.READ,
    "w": FileMode.WRITE,
    "a": FileMode.APPEND,
}


def file_mode_from_string(text) -> FileMode:
    """Mode named by the first letter of ``text``; INVALID when unknown."""
    return _MODE_LETTERS.get(text[:1], FileMode.INVALID)