import pytest

from larvaos.errors import Errno, KernelError
from larvaos.pathparser import MAX_PATH_LENGTH, is_valid_path, parse_path


def test_absolute_paths_are_valid():
    assert is_valid_path("/loop.bin")
    assert is_valid_path("/" + "a" * (MAX_PATH_LENGTH * 2))


@pytest.mark.parametrize("path", ["", "loop.bin", "\0/x", "dir/file"])
def test_relative_or_empty_paths_are_invalid(path):
    assert not is_valid_path(path)


def test_parse_splits_parts_in_order():
    assert parse_path("/dir/file.txt") == ["dir", "file.txt"]


def test_parse_skips_repeated_and_trailing_slashes():
    assert parse_path("//a//b/") == ["a", "b"]


def test_parse_stops_at_nul():
    assert parse_path("/a\0/b") == ["a"]


def test_parse_round_trips_joined_parts():
    parts = ["usr", "bin", "shell.bin"]
    assert parse_path("/" + "/".join(parts)) == parts


@pytest.mark.parametrize("path", ["/", "///", "relative/path", ""])
def test_parse_rejects_paths_without_parts(path):
    with pytest.raises(KernelError) as info:
        parse_path(path)
    assert info.value.errno is Errno.EINVAL