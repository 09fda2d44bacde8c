"""SHA-1 checksums of files stored in a V6 filesystem."""

from __future__ import annotations

import hashlib

from syslab.diskimg import SECTOR_SIZE
from syslab.filesystem import UnixFilesystem
from syslab.layout import FilesystemError

CHECKSUM_SIZE = 20


def checksum_by_inumber(fs: UnixFilesystem, inumber: int) -> bytes:
    """Return the SHA-1 digest of the contents of inode ``inumber``."""
    inode = fs.iget(inumber)
    if not inode.is_allocated():
        raise FilesystemError(f"inode {inumber} is not allocated")
    digest = hashlib.sha1()
    for offset in range(0, inode.size(), SECTOR_SIZE):
        digest.update(fs.get_block(inumber, offset // SECTOR_SIZE))
    return digest.digest()


def checksum_by_pathname(fs: UnixFilesystem, pathname: str) -> bytes:
    """Return the SHA-1 digest of the file found at ``pathname``."""
    return checksum_by_inumber(fs, fs.lookup(pathname))


def checksum_to_string(chksum: bytes) -> str:
    """Render a checksum as lower-case hexadecimal."""
    if len(chksum) != CHECKSUM_SIZE:
        raise ValueError(f"checksum must be {CHECKSUM_SIZE} bytes, got {len(chksum)}")
    return "".join(f"{byte:02x}" for byte in chksum)