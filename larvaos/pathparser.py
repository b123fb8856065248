"""Splitting of absolute file paths into their parts."""

from __future__ import annotations

from .errors import Errno, KernelError
from .libc import strnlen

MAX_PATH_LENGTH = 100
ROOT_PATH = "/"


def is_valid_path(path) -> bool:
    """True when ``path`` starts at the file-system root."""
    length = strnlen(path, MAX_PATH_LENGTH)
    return length >= len(ROOT_PATH) and path.startswith(ROOT_PATH)


def parse_path(path) -> list[str]:
    """Return the non-empty parts of an absolute path, in order."""
    if not is_valid_path(path):
        raise KernelError(Errno.EINVAL, f"invalid path: {path!r}")
    parts = [part for part in path.split("\0", 1)[0].split("/") if part]
    if not parts:
        raise KernelError(Errno.EINVAL, f"path names nothing: {path!r}")
    return parts