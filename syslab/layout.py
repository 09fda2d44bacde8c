"""On-disk structures of the Unix Version 6 filesystem."""

from __future__ import annotations

import struct
from dataclasses import dataclass

BOOTBLOCK_SECTOR = 0
SUPERBLOCK_SECTOR = 1
INODE_START_SECTOR = 2
ROOT_INUMBER = 1
BOOTBLOCK_MAGIC_NUM = 0o407

# Inode mode bits.
IALLOC = 0o100000
IFMT = 0o60000
IFDIR = 0o40000
IFCHR = 0o20000
IFBLK = 0o60000
ILARG = 0o10000
ISUID = 0o4000
ISGID = 0o2000
ISVTX = 0o1000
IREAD = 0o400
IWRITE = 0o200
IEXEC = 0o100

DIRNAME_LEN = 14

_SUPERBLOCK = struct.Struct("<3H100HH100H4B2H48H")
_INODE = struct.Struct("<H4BH8H2H2H")
_DIRENT = struct.Struct(f"<H{DIRNAME_LEN}s")

SUPERBLOCK_SIZE = _SUPERBLOCK.size
INODE_SIZE = _INODE.size
DIRENT_SIZE = _DIRENT.size


class FilesystemError(Exception):
    """Raised when the filesystem cannot satisfy a request."""


def _unpack(layout: struct.Struct, data: bytes, what: str) -> tuple:
    if len(data) < layout.size:
        raise FilesystemError(f"{what} needs {layout.size} bytes, got {len(data)}")
    return layout.unpack_from(data)


@dataclass(frozen=True)
class Superblock:
    """The filesystem superblock."""

    isize: int = 0
    fsize: int = 0
    nfree: int = 0
    free: tuple[int, ...] = (0,) * 100
    ninode: int = 0
    inodes: tuple[int, ...] = (0,) * 100
    flock: int = 0
    ilock: int = 0
    fmod: int = 0
    ronly: int = 0
    time: tuple[int, int] = (0, 0)

    @classmethod
    def from_bytes(cls, data: bytes) -> Superblock:
        v = _unpack(_SUPERBLOCK, data, "superblock")
        return cls(
            isize=v[0],
            fsize=v[1],
            nfree=v[2],
            free=tuple(v[3:103]),
            ninode=v[103],
            inodes=tuple(v[104:204]),
            flock=v[204],
            ilock=v[205],
            fmod=v[206],
            ronly=v[207],
            time=(v[208], v[209]),
        )


@dataclass(frozen=True)
class Inode:
    """An on-disk inode."""

    mode: int = 0
    nlink: int = 0
    uid: int = 0
    gid: int = 0
    size0: int = 0
    size1: int = 0
    addr: tuple[int, ...] = (0,) * 8
    atime: tuple[int, int] = (0, 0)
    mtime: tuple[int, int] = (0, 0)

    @classmethod
    def from_bytes(cls, data: bytes) -> Inode:
        v = _unpack(_INODE, data, "inode")
        return cls(
            mode=v[0],
            nlink=v[1],
            uid=v[2],
            gid=v[3],
            size0=v[4],
            size1=v[5],
            addr=tuple(v[6:14]),
            atime=(v[14], v[15]),
            mtime=(v[16], v[17]),
        )

    def size(self) -> int:
        """File size in bytes, stored as a 24-bit number."""
        return (self.size0 << 16) | self.size1

    def is_allocated(self) -> bool:
        return bool(self.mode & IALLOC)

    def is_directory(self) -> bool:
        return (self.mode & IFMT) == IFDIR

    def is_large(self) -> bool:
        return bool(self.mode & ILARG)


@dataclass(frozen=True)
class DirEntry:
    """A directory entry: an inode number and a name of up to 14 bytes."""

    inumber: int
    raw_name: bytes

    @classmethod
    def from_bytes(cls, data: bytes) -> DirEntry:
        inumber, raw_name = _unpack(_DIRENT, data, "directory entry")
        return cls(inumber, raw_name)

    def to_bytes(self) -> bytes:
        return _DIRENT.pack(self.inumber, self.raw_name)

    def name(self) -> str:
        """The entry name, up to the first NUL byte."""
        return self.raw_name[:DIRNAME_LEN].split(b"\0", 1)[0].decode("latin-1")