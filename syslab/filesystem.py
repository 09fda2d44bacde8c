"""Read access to a Unix Version 6 filesystem stored in a disk image."""

from __future__ import annotations

import os
import struct

from syslab.diskimg import SECTOR_SIZE, DiskImage
from syslab.layout import (
    BOOTBLOCK_MAGIC_NUM,
    BOOTBLOCK_SECTOR,
    DIRENT_SIZE,
    DIRNAME_LEN,
    INODE_SIZE,
    INODE_START_SECTOR,
    ROOT_INUMBER,
    SUPERBLOCK_SECTOR,
    DirEntry,
    FilesystemError,
    Inode,
    Superblock,
)

INODES_PER_SECTOR = SECTOR_SIZE // INODE_SIZE
PTRS_PER_BLOCK = SECTOR_SIZE // 2
_DIRECT_BLOCKS = 8
_INDIRECT_BLOCKS = 7
_POINTERS = struct.Struct(f"<{PTRS_PER_BLOCK}H")


def _name_key(name: bytes) -> bytes:
    return name[:DIRNAME_LEN].split(b"\0", 1)[0]


class UnixFilesystem:
    """A mounted V6 filesystem: inodes, file blocks, directories and paths."""

    def __init__(self, disk: DiskImage) -> None:
        boot = disk.read_sector(BOOTBLOCK_SECTOR)
        if len(boot) != SECTOR_SIZE:
            raise FilesystemError("error reading bootblock")
        (magic,) = struct.unpack_from("<H", boot)
        if magic != BOOTBLOCK_MAGIC_NUM:
            raise FilesystemError(f"bad magic number on disk (0x{magic:x})")
        super_data = disk.read_sector(SUPERBLOCK_SECTOR)
        if len(super_data) != SECTOR_SIZE:
            raise FilesystemError("error reading superblock")
        self.disk = disk
        self.superblock = Superblock.from_bytes(super_data)

    @classmethod
    def open(cls, path: str | os.PathLike[str]) -> UnixFilesystem:
        """Open a disk image read-only and mount the filesystem on it."""
        disk = DiskImage(path, read_only=True)
        try:
            return cls(disk)
        except BaseException:
            disk.close()
            raise

    def iget(self, inumber: int) -> Inode:
        """Fetch inode number ``inumber`` (numbered from 1)."""
        if inumber < 1:
            raise FilesystemError(f"invalid inode number {inumber}")
        sector = INODE_START_SECTOR + (inumber - 1) // INODES_PER_SECTOR
        offset = ((inumber - 1) % INODES_PER_SECTOR) * INODE_SIZE
        data = self.disk.read_sector(sector)
        if len(data) < offset + INODE_SIZE:
            raise FilesystemError(f"can't read inode {inumber}")
        return Inode.from_bytes(data[offset:offset + INODE_SIZE])

    def _read_pointers(self, sector: int) -> tuple[int, ...]:
        data = self.disk.read_sector(sector)
        if len(data) != SECTOR_SIZE:
            raise FilesystemError(f"can't read indirect block {sector}")
        return _POINTERS.unpack(data)

    def index_lookup(self, inode: Inode, block_num: int) -> int:
        """Map a file block index to the disk sector that holds it."""
        if not inode.is_allocated():
            raise FilesystemError("inode is not allocated")
        if block_num < 0:
            raise FilesystemError(f"invalid block number {block_num}")

        if not inode.is_large():
            if block_num >= _DIRECT_BLOCKS:
                raise FilesystemError(f"block {block_num} beyond small file")
            sector = inode.addr[block_num]
        elif block_num < _INDIRECT_BLOCKS * PTRS_PER_BLOCK:
            indirect = inode.addr[block_num // PTRS_PER_BLOCK]
            if indirect == 0:
                raise FilesystemError(f"block {block_num} is not mapped")
            sector = self._read_pointers(indirect)[block_num % PTRS_PER_BLOCK]
        else:
            remaining = block_num - _INDIRECT_BLOCKS * PTRS_PER_BLOCK
            first, second = divmod(remaining, PTRS_PER_BLOCK)
            if first >= PTRS_PER_BLOCK:
                raise FilesystemError(f"block {block_num} beyond largest file")
            double = inode.addr[_INDIRECT_BLOCKS]
            if double == 0:
                raise FilesystemError(f"block {block_num} is not mapped")
            indirect = self._read_pointers(double)[first]
            if indirect == 0:
                raise FilesystemError(f"block {block_num} is not mapped")
            sector = self._read_pointers(indirect)[second]

        if sector == 0:
            raise FilesystemError(f"block {block_num} is not mapped")
        return sector

    def get_block(self, inumber: int, block_num: int) -> bytes:
        """Return the valid bytes of one block of a file."""
        inode = self.iget(inumber)
        sector = self.index_lookup(inode, block_num)
        data = self.disk.read_sector(sector)
        start = block_num * SECTOR_SIZE
        file_size = inode.size()
        if file_size <= start:
            raise FilesystemError(f"block {block_num} is past end of file")
        valid = min(SECTOR_SIZE, file_size - start)
        if len(data) < valid:
            raise FilesystemError(f"can't read sector {sector}")
        return data[:valid]

    def find_name(self, name: str, dir_inumber: int) -> DirEntry:
        """Find the entry called ``name`` in directory ``dir_inumber``."""
        wanted = _name_key(name.encode("latin-1"))
        size = self.iget(dir_inumber).size()
        offset = 0
        while offset < size:
            block = self.get_block(dir_inumber, offset // SECTOR_SIZE)
            usable = len(block) - len(block) % DIRENT_SIZE
            for pos in range(0, usable, DIRENT_SIZE):
                entry = DirEntry.from_bytes(block[pos:pos + DIRENT_SIZE])
                if _name_key(entry.raw_name) == wanted:
                    return entry
            offset += len(block)
        raise FilesystemError(f"{name!r} not found in directory {dir_inumber}")

    def lookup(self, pathname: str) -> int:
        """Return the inode number of a path, resolved from the root."""
        if not pathname:
            raise FilesystemError("empty pathname")
        inumber = ROOT_INUMBER
        for part in filter(None, pathname.split("/")):
            inumber = self.find_name(part, inumber).inumber
        return inumber

    def dir_entries(self, inumber: int, max_entries: int = 10000) -> list[DirEntry]:
        """Return up to ``max_entries`` entries of a directory, in disk order."""
        inode = self.iget(inumber)
        if not inode.is_allocated() or not inode.is_directory():
            raise FilesystemError(f"inode {inumber} is not an allocated directory")
        if max_entries < 1:
            raise FilesystemError("max_entries must be at least 1")
        size = inode.size()
        if size % DIRENT_SIZE:
            raise FilesystemError(f"directory {inumber} has a malformed size {size}")
        entries: list[DirEntry] = []
        for bno in range((size + SECTOR_SIZE - 1) // SECTOR_SIZE):
            block = self.get_block(inumber, bno)
            for pos in range(0, len(block) - len(block) % DIRENT_SIZE, DIRENT_SIZE):
                entries.append(DirEntry.from_bytes(block[pos:pos + DIRENT_SIZE]))
                if len(entries) >= max_entries:
                    return entries
        return entries

    def close(self) -> None:
        self.disk.close()

    def __enter__(self) -> UnixFilesystem:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()