import os

import pytest

from larvaos.fstypes import (
    FILE_STAT_READ_ONLY,
    FileMode,
    FileStat,
    SeekMode,
    file_mode_from_string,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("r", FileMode.READ),
        ("w", FileMode.WRITE),
        ("a", FileMode.APPEND),
        ("rb", FileMode.READ),
        ("w+", FileMode.WRITE),
    ],
)
def test_known_modes(text, expected):
    assert file_mode_from_string(text) is expected


@pytest.mark.parametrize("text", ["", "x", "R", " r"])
def test_unknown_modes_are_invalid(text):
    assert file_mode_from_string(text) is FileMode.INVALID


@pytest.mark.parametrize(
    "origin, expected",
    [
        (os.SEEK_SET, SeekMode.SET),
        (os.SEEK_CUR, SeekMode.CUR),
        (os.SEEK_END, SeekMode.END),
    ],
)
def test_seek_modes_match_standard_origins(origin, expected):
    assert SeekMode(origin) is expected


def test_file_stat_defaults_are_empty():
    stat = FileStat()
    assert stat.filesize == 0
    assert stat.filename == ""
    assert stat.read_only is False


def test_file_stat_read_only_flag():
    stat = FileStat(attribute=FILE_STAT_READ_ONLY, filesize=10)
    assert stat.read_only is True
    assert stat.filesize == 10


def test_file_stat_other_attributes_are_not_read_only():
    stat = FileStat(attribute=0x20)
    assert stat.read_only is False