import struct

import pytest

from larvaos.disk import Disk
from larvaos.errors import Errno, KernelError, KernelPanic
from larvaos.fat16 import FAT_FILE_SUBDIRECTORY, DirectoryItem
from larvaos.fstypes import MAX_FILE_DESCRIPTORS, MAX_FILESYSTEMS, FileMode, SeekMode
from larvaos.vfs import File, VirtualFileSystem

SECTOR = 512
HELLO = b"Hello, world!"
NOTE = b"note"
BIG = bytes(i % 251 for i in range(600))


def _entry(name, ext, cluster, size, attribute=0):
    return DirectoryItem(
        filename=name.ljust(8),
        ext=ext.ljust(3),
        attribute=attribute,
        low_cluster=cluster,
        filesize=size,
    ).to_bytes()


def _cluster_offset(cluster):
    return (4 + cluster - 2) * SECTOR


def _put(image, offset, data):
    image[offset:offset + len(data)] = data


def build_image():
    image = bytearray(SECTOR * 12)
    header = struct.pack(
        "<3s8sHBHBHHBHHHII",
        b"\xeb\x3c\x90", b"LARVA   ", SECTOR, 1, 1, 2, 16, 12, 0xF8, 1, 32, 2, 0, 0,
    )
    extended = struct.pack("<BBBI11s8s", 0x80, 0, 0x29, 1, b"NO NAME    ", b"FAT16   ")
    _put(image, 0, header + extended)
    fat = struct.pack("<7H", 0xFFF8, 0xFFFF, 0xFFFF, 0xFFFF, 0xFFFF, 6, 0xFFFF)
    _put(image, SECTOR, fat)
    root = (
        _entry(b"HELLO", b"TXT", 2, len(HELLO))
        + _entry(b"DOCS", b"", 3, 0, FAT_FILE_SUBDIRECTORY)
        + _entry(b"BIG", b"BIN", 5, len(BIG))
    )
    _put(image, 3 * SECTOR, root)
    _put(image, _cluster_offset(2), HELLO)
    _put(image, _cluster_offset(3), _entry(b"NOTE", b"TXT", 4, len(NOTE)))
    _put(image, _cluster_offset(4), NOTE)
    _put(image, _cluster_offset(5), BIG[:SECTOR])
    _put(image, _cluster_offset(6), BIG[SECTOR:])
    return bytes(image)


@pytest.fixture
def vfs():
    system = VirtualFileSystem()
    system.resolve(Disk(build_image(), 0))
    return system


def test_fat16_is_registered_by_default():
    assert VirtualFileSystem().filesystem_names == ["FAT16"]


def test_resolve_binds_filesystem_to_disk():
    system = VirtualFileSystem()
    disk = Disk(build_image(), 0)
    filesystem = system.resolve(disk)
    assert disk.filesystem is filesystem
    assert filesystem.name == "FAT16"
    assert system.disk is disk


def test_resolve_unknown_disk_leaves_it_unbound():
    system = VirtualFileSystem()
    disk = Disk(bytes(SECTOR * 4), 0)
    assert system.resolve(disk) is None
    assert disk.filesystem is None
    with pytest.raises(KernelError) as info:
        system.fopen("/HELLO.TXT", "r")
    assert info.value.errno == Errno.EIO


def test_fopen_without_disk_fails():
    with pytest.raises(KernelError) as info:
        VirtualFileSystem().fopen("/HELLO.TXT", "r")
    assert info.value.errno == Errno.EIO


def test_resolve_skips_filesystems_that_reject_the_disk():
    system = VirtualFileSystem()
    calls = []

    def rejecting(disk):
        calls.append(disk.id)
        raise KernelError(Errno.EIO, "not mine")

    system.insert_filesystem("NOPE", rejecting)
    disk = Disk(bytes(SECTOR * 4), 0)
    assert system.resolve(disk) is None
    assert calls == [0]


def test_insert_filesystem_limit_panics():
    system = VirtualFileSystem()
    for number in range(MAX_FILESYSTEMS - 1):
        system.insert_filesystem(f"FS{number}", lambda disk: None)
    assert len(system.filesystem_names) == MAX_FILESYSTEMS
    with pytest.raises(KernelPanic):
        system.insert_filesystem("EXTRA", lambda disk: None)


def test_descriptors_start_at_one_and_are_reused(vfs):
    fd = vfs.fopen("/HELLO.TXT", "r")
    assert fd == 1
    second = vfs.fopen("/HELLO.TXT", "r")
    assert second == fd + 1
    vfs.fclose(fd)
    assert vfs.fopen("/BIG.BIN", "r") == fd


def test_fread_returns_file_contents(vfs):
    fd = vfs.fopen("/HELLO.TXT", "r")
    assert vfs.fread(fd, len(HELLO), 1) == HELLO


def test_fread_across_clusters(vfs):
    fd = vfs.fopen("/BIG.BIN", "r")
    assert vfs.fread(fd, len(BIG), 1) == BIG


def test_fread_multiple_members(vfs):
    fd = vfs.fopen("/HELLO.TXT", "r")
    assert vfs.fread(fd, 4, 2) == HELLO[:8]


def test_open_in_subdirectory_is_case_insensitive(vfs):
    fd = vfs.fopen("/docs/note.txt", "r")
    assert vfs.fread(fd, len(NOTE), 1) == NOTE


def test_fstat_reports_size_and_name(vfs):
    fd = vfs.fopen("/HELLO.TXT", "r")
    stat = vfs.fstat(fd)
    assert stat.filesize == len(HELLO)
    assert stat.filename == "HELLO"
    assert stat.ext == "TXT"


def test_fseek_then_read(vfs):
    fd = vfs.fopen("/HELLO.TXT", "r")
    assert vfs.fseek(fd, 7, SeekMode.SET) == 7
    assert vfs.fread(fd, 6, 1) == HELLO[7:]


def test_fseek_past_end_fails(vfs):
    fd = vfs.fopen("/HELLO.TXT", "r")
    with pytest.raises(KernelError) as info:
        vfs.fseek(fd, len(HELLO), SeekMode.SET)
    assert info.value.errno == Errno.EIO


@pytest.mark.parametrize("size, nmemb", [(0, 1), (1, 0)])
def test_fread_rejects_empty_requests(vfs, size, nmemb):
    fd = vfs.fopen("/HELLO.TXT", "r")
    with pytest.raises(KernelError) as info:
        vfs.fread(fd, size, nmemb)
    assert info.value.errno == Errno.EINVAL


@pytest.mark.parametrize("fd", [0, -1, 2, MAX_FILE_DESCRIPTORS])
def test_unknown_descriptor_is_rejected(vfs, fd):
    vfs.fopen("/HELLO.TXT", "r")
    with pytest.raises(KernelError) as info:
        vfs.fstat(fd)
    assert info.value.errno == Errno.EINVAL


def test_closed_descriptor_is_rejected(vfs):
    fd = vfs.fopen("/HELLO.TXT", "r")
    vfs.fclose(fd)
    with pytest.raises(KernelError) as info:
        vfs.fread(fd, 1, 1)
    assert info.value.errno == Errno.EINVAL


def test_write_mode_is_read_only_filesystem(vfs):
    with pytest.raises(KernelError) as info:
        vfs.fopen("/HELLO.TXT", "w")
    assert info.value.errno == Errno.EROFS


def test_invalid_mode_string(vfs):
    with pytest.raises(KernelError) as info:
        vfs.fopen("/HELLO.TXT", "x")
    assert info.value.errno == Errno.EINVAL


def test_invalid_path(vfs):
    with pytest.raises(KernelError) as info:
        vfs.fopen("HELLO.TXT", "r")
    assert info.value.errno == Errno.EINVAL


def test_missing_file(vfs):
    with pytest.raises(KernelError) as info:
        vfs.fopen("/MISSING.TXT", "r")
    assert info.value.errno == Errno.EIO


def test_descriptor_table_exhaustion(vfs):
    fds = [vfs.fopen("/HELLO.TXT", "r") for _ in range(MAX_FILE_DESCRIPTORS)]
    assert len(set(fds)) == MAX_FILE_DESCRIPTORS
    with pytest.raises(KernelError) as info:
        vfs.fopen("/HELLO.TXT", "r")
    assert info.value.errno == Errno.ENOMEM


def test_file_context_manager_reads_and_closes(vfs):
    with File(vfs, "/HELLO.TXT") as handle:
        assert handle.is_open()
        assert handle.size() == len(HELLO)
        assert handle.read(len(HELLO)) == HELLO
    assert not handle.is_open()


def test_file_seekg_set_and_cur(vfs):
    with File(vfs, "/HELLO.TXT", FileMode.READ) as handle:
        handle.seekg(7, SeekMode.SET)
        handle.seekg(2, SeekMode.CUR)
        assert handle.read(4) == HELLO[9:]


def test_closed_file_reads_nothing(vfs):
    handle = File(vfs, "/HELLO.TXT")
    assert handle.read(4) == b""
    assert handle.size() == 0


def test_file_open_twice_keeps_descriptor(vfs):
    handle = File(vfs, "/HELLO.TXT")
    handle.open()
    fd = handle.fd
    handle.open()
    assert handle.fd == fd
    handle.close()
    assert handle.fd == 0


def test_file_open_missing_raises(vfs):
    handle = File(vfs, "/NOPE.TXT")
    with pytest.raises(KernelError) as info:
        handle.open()
    assert info.value.errno == Errno.EIO
    assert not handle.is_open()


def test_file_close_releases_descriptor(vfs):
    with File(vfs, "/HELLO.TXT") as handle:
        fd = handle.fd
    assert vfs.fopen("/BIG.BIN", "r") == fd