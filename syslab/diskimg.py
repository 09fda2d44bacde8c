"""Sector-level access to a disk image file."""

from __future__ import annotations

import os
from typing import BinaryIO

SECTOR_SIZE = 512


class DiskImage:
    """A disk image read and written in fixed-size sectors."""

    def __init__(self, path: str | os.PathLike[str], read_only: bool = True) -> None:
        self.path = os.fspath(path)
        self.read_only = read_only
        self._file: BinaryIO = open(self.path, "rb" if read_only else "r+b")

    def size(self) -> int:
        """Return the size of the image in bytes."""
        return self._file.seek(0, os.SEEK_END)

    def _seek_sector(self, sector_num: int) -> None:
        if sector_num < 0:
            raise ValueError(f"negative sector number {sector_num}")
        self._file.seek(sector_num * SECTOR_SIZE)

    def read_sector(self, sector_num: int) -> bytes:
        """Read one sector; the result is shorter than a sector near the end of the image."""
        self._seek_sector(sector_num)
        return self._file.read(SECTOR_SIZE)

    def write_sector(self, sector_num: int, data: bytes) -> int:
        """Write one full sector and return the number of bytes written."""
        if len(data) != SECTOR_SIZE:
            raise ValueError(f"sector data must be {SECTOR_SIZE} bytes, got {len(data)}")
        self._seek_sector(sector_num)
        written = self._file.write(bytes(data))
        self._file.flush()
        return written

    def close(self) -> None:
        """Close the underlying file."""
        self._file.close()

    def __enter__(self) -> DiskImage:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()