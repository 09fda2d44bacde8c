import struct

import pytest

from syslab.diskimg import DiskImage
from syslab.filesystem import UnixFilesystem
from syslab.layout import IALLOC, IFDIR, ILARG, FilesystemError, Inode

SECTOR = 512
ROOT_DIR_SECTOR = 3
HELLO_SECTORS = (4, 5)
SUB_DIR_SECTOR = 6
BIG_INDIRECT = 7
BIG_SECTORS = (8, 9)
DOUBLE_INDIRECT = 10
SECOND_INDIRECT = 11
DEEP_DATA = 12
NUM_SECTORS = 13

HELLO = bytes((i * 7) % 251 for i in range(600))
BIG = bytes((i * 13) % 253 for i in range(700))
LONG_NAME = "abcdefghijklmn"


def _inode(mode, size, addr):
    addr = list(addr) + [0] * (8 - len(addr))
    return struct.pack("<H4BH8H2H2H", mode, 1, 0, 0, size >> 16, size & 0xFFFF, *addr, 0, 0, 0, 0)


def _dirents(entries):
    return b"".join(struct.pack("<H14s", n, name.encode()) for n, name in entries)


def _pointers(values):
    values = list(values) + [0] * (256 - len(values))
    return struct.pack("<256H", *values)


def _put(image, sector, data):
    image[sector * SECTOR:sector * SECTOR + len(data)] = data


ROOT_ENTRIES = [(1, "."), (1, ".."), (2, "hello.txt"), (3, "sub")]
SUB_ENTRIES = [(3, "."), (1, ".."), (4, "inner"), (2, LONG_NAME)]


def _build_image(magic=0o407):
    image = bytearray(NUM_SECTORS * SECTOR)
    _put(image, 0, struct.pack("<H", magic))
    sb = struct.pack("<3H100HH100H4B2H48H", 1, NUM_SECTORS, 0, *([0] * 100), 0,
                     *([0] * 100), 0, 0, 0, 0, 0, 0, *([0] * 48))
    _put(image, 1, sb)
    dir_mode = IALLOC | IFDIR | 0o755
    inodes = b"".join([
        _inode(dir_mode, len(ROOT_ENTRIES) * 16, [ROOT_DIR_SECTOR]),
        _inode(IALLOC | 0o644, len(HELLO), HELLO_SECTORS),
        _inode(dir_mode, len(SUB_ENTRIES) * 16, [SUB_DIR_SECTOR]),
        _inode(IALLOC | ILARG | 0o644, len(BIG), [BIG_INDIRECT]),
        _inode(0, 0, []),
    ])
    _put(image, 2, inodes)
    _put(image, ROOT_DIR_SECTOR, _dirents(ROOT_ENTRIES))
    _put(image, HELLO_SECTORS[0], HELLO[:SECTOR])
    _put(image, HELLO_SECTORS[1], HELLO[SECTOR:])
    _put(image, SUB_DIR_SECTOR, _dirents(SUB_ENTRIES))
    _put(image, BIG_INDIRECT, _pointers(BIG_SECTORS))
    _put(image, BIG_SECTORS[0], BIG[:SECTOR])
    _put(image, BIG_SECTORS[1], BIG[SECTOR:])
    _put(image, DOUBLE_INDIRECT, _pointers([SECOND_INDIRECT]))
    _put(image, SECOND_INDIRECT, _pointers([DEEP_DATA]))
    return bytes(image)


@pytest.fixture
def image_path(tmp_path):
    path = tmp_path / "v6.img"
    path.write_bytes(_build_image())
    return path


@pytest.fixture
def fs(image_path):
    with UnixFilesystem.open(image_path) as filesystem:
        yield filesystem


def test_superblock_is_read(fs):
    assert fs.superblock.isize == 1
    assert fs.superblock.fsize == NUM_SECTORS


def test_bad_magic_rejected(tmp_path):
    path = tmp_path / "bad.img"
    path.write_bytes(_build_image(magic=0x1234))
    with pytest.raises(FilesystemError):
        UnixFilesystem.open(path)


def test_truncated_image_rejected(tmp_path):
    path = tmp_path / "tiny.img"
    path.write_bytes(b"\x07\x01")
    with pytest.raises(FilesystemError):
        UnixFilesystem.open(path)


def test_constructed_from_disk_image(image_path):
    with DiskImage(image_path) as disk:
        filesystem = UnixFilesystem(disk)
        assert filesystem.iget(1).is_directory()


def test_iget_reads_inodes(fs):
    root = fs.iget(1)
    assert root.is_allocated() and root.is_directory()
    assert fs.iget(2).size() == len(HELLO)
    assert fs.iget(4).is_large()
    assert not fs.iget(5).is_allocated()


def test_iget_rejects_zero(fs):
    with pytest.raises(FilesystemError):
        fs.iget(0)


def test_index_lookup_small_file(fs):
    inode = fs.iget(2)
    assert fs.index_lookup(inode, 0) == HELLO_SECTORS[0]
    assert fs.index_lookup(inode, 1) == HELLO_SECTORS[1]


@pytest.mark.parametrize("block", [2, 8, -1])
def test_index_lookup_small_file_errors(fs, block):
    with pytest.raises(FilesystemError):
        fs.index_lookup(fs.iget(2), block)


def test_index_lookup_unallocated(fs):
    with pytest.raises(FilesystemError):
        fs.index_lookup(fs.iget(5), 0)


def test_index_lookup_large_file(fs):
    inode = fs.iget(4)
    assert fs.index_lookup(inode, 0) == BIG_SECTORS[0]
    assert fs.index_lookup(inode, 1) == BIG_SECTORS[1]
    with pytest.raises(FilesystemError):
        fs.index_lookup(inode, 2)
    with pytest.raises(FilesystemError):
        fs.index_lookup(inode, 256)


def test_index_lookup_double_indirect(fs):
    inode = Inode(mode=IALLOC | ILARG, addr=(0,) * 7 + (DOUBLE_INDIRECT,))
    assert fs.index_lookup(inode, 7 * 256) == DEEP_DATA
    with pytest.raises(FilesystemError):
        fs.index_lookup(inode, 7 * 256 + 1)
    with pytest.raises(FilesystemError):
        fs.index_lookup(inode, 7 * 256 + 256)


def test_get_block_returns_valid_bytes(fs):
    assert fs.get_block(2, 0) == HELLO[:SECTOR]
    assert fs.get_block(2, 1) == HELLO[SECTOR:]
    assert fs.get_block(4, 0) + fs.get_block(4, 1) == BIG


def test_get_block_past_end(fs):
    with pytest.raises(FilesystemError):
        fs.get_block(2, 2)


def test_find_name(fs):
    entry = fs.find_name("hello.txt", 1)
    assert entry.inumber == 2
    assert entry.name() == "hello.txt"


def test_find_name_missing(fs):
    with pytest.raises(FilesystemError):
        fs.find_name("absent", 1)


def test_find_name_compares_first_fourteen_bytes(fs):
    assert fs.find_name(LONG_NAME + "xyz", 3).inumber == 2


def test_lookup_paths(fs):
    assert fs.lookup("/") == 1
    assert fs.lookup("/hello.txt") == 2
    assert fs.lookup("/sub/inner") == 4
    assert fs.lookup("//sub//inner/") == 4


@pytest.mark.parametrize("path", ["", "/nope", "/sub/missing"])
def test_lookup_errors(fs, path):
    with pytest.raises(FilesystemError):
        fs.lookup(path)


def test_dir_entries_in_disk_order(fs):
    assert [(e.inumber, e.name()) for e in fs.dir_entries(1)] == ROOT_ENTRIES
    assert [(e.inumber, e.name()) for e in fs.dir_entries(3)] == SUB_ENTRIES


def test_dir_entries_limited(fs):
    entries = fs.dir_entries(1, 2)
    assert [e.name() for e in entries] == [".", ".."]


def test_dir_entries_errors(fs):
    with pytest.raises(FilesystemError):
        fs.dir_entries(2)
    with pytest.raises(FilesystemError):
        fs.dir_entries(5)
    with pytest.raises(FilesystemError):
        fs.dir_entries(1, 0)


def test_close_releases_disk(image_path):
    with UnixFilesystem.open(image_path) as filesystem:
        pass
    with pytest.raises(ValueError):
        filesystem.iget(1)