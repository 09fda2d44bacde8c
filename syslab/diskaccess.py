"""Dump inode and pathname checksums of a V6 disk image."""

from __future__ import annotations

import argparse
import sys
from typing import TextIO

from syslab.checksum import checksum_by_inumber, checksum_by_pathname, checksum_to_string
from syslab.diskimg import DiskImage
from syslab.filesystem import UnixFilesystem
from syslab.layout import ROOT_INUMBER, FilesystemError

_PROG = "diskimageaccess"
_MAXPATH = 1024
_MAX_DIR_ENTRIES = 10000
_INODES_PER_BLOCK = 16


def dump_inode_checksums(fs: UnixFilesystem, out: TextIO, err: TextIO) -> None:
    """Write the checksum of every allocated inode to ``out``."""
    for inumber in range(1, fs.superblock.isize * _INODES_PER_BLOCK):
        try:
            inode = fs.iget(inumber)
        except FilesystemError:
            err.write(f"Can't read inode {inumber} \n")
            return
        if not inode.is_allocated():
            continue
        try:
            chksum = checksum_by_inumber(fs, inumber)
        except FilesystemError:
            err.write(f"Inode {inumber} can't compute chksum\n")
            continue
        out.write(
            f"Inode {inumber} mode 0x{inode.mode:x} size {inode.size()} "
            f"checksum {checksum_to_string(chksum)}\n"
        )


def _dump_path_and_children(
    fs: UnixFilesystem, pathname: str, inumber: int, out: TextIO, err: TextIO
) -> None:
    try:
        inode = fs.iget(inumber)
    except FilesystemError:
        err.write(f"Can't read inode {inumber} \n")
        return
    try:
        by_inumber = checksum_by_inumber(fs, inumber)
        by_path = checksum_by_pathname(fs, pathname)
    except FilesystemError:
        err.write(f"Can't checksum inode {inumber} path {pathname}\n")
        return
    if by_inumber != by_path:
        err.write(f"Pathname checksum of {pathname} differs from inode {inumber}\n")
        return

    out.write(
        f"Path {pathname} {inumber} mode 0x{inode.mode:x} size {inode.size()} "
        f"checksum {checksum_to_string(by_path)}\n"
    )

    prefix = "" if pathname == "/" else pathname
    if not inode.is_directory():
        return
    if len(prefix) > _MAXPATH - 16:
        err.write(f"Too deep of directories {prefix}\n")
    try:
        entries = fs.dir_entries(inumber, _MAX_DIR_ENTRIES)
    except FilesystemError:
        return
    for entry in entries:
        name = entry.name()
        if name in (".", ".."):
            continue
        _dump_path_and_children(fs, f"{prefix}/{name}", entry.inumber, out, err)


def dump_pathname_checksums(fs: UnixFilesystem, out: TextIO, err: TextIO) -> None:
    """Walk the tree from the root, writing the checksum of every path to ``out``."""
    _dump_path_and_children(fs, "/", ROOT_INUMBER, out, err)


def print_directory(fs: UnixFilesystem, pathname: str, out: TextIO, err: TextIO) -> None:
    """Write every entry of the directory at ``pathname`` to ``out``."""
    try:
        inumber = fs.lookup(pathname)
    except FilesystemError:
        err.write(f"Can't find {pathname}\n")
        return
    try:
        entries = fs.dir_entries(inumber, _MAX_DIR_ENTRIES)
    except FilesystemError:
        err.write(f"Can't read entries from {pathname}\n")
        return
    for entry in entries:
        out.write(f"Direntry {pathname} Name {entry.name()} Inumber {entry.inumber}\n")


class _UsageError(Exception):
    pass


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        raise _UsageError(message)


def _usage(err: TextIO) -> int:
    err.write(f"Usage: {_PROG} <options> diskimagePath\n")
    err.write("where <options> can be:\n")
    err.write("-q     don't print extra info\n")
    err.write("-i     print all inode checksums\n")
    err.write("-p     print all pathname checksums\n")
    return 1


def main(argv: list[str] | None = None) -> int:
    """Command entry point; returns the process exit status."""
    out, err = sys.stdout, sys.stderr
    parser = _Parser(prog=_PROG, add_help=False)
    parser.add_argument("-q", dest="quiet", action="store_true")
    parser.add_argument("-i", dest="idump", action="store_true")
    parser.add_argument("-p", dest="pdump", action="store_true")
    parser.add_argument("diskpath")
    try:
        args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    except _UsageError:
        return _usage(err)

    try:
        disk = DiskImage(args.diskpath, read_only=True)
    except OSError:
        err.write(f"Can't open diskimagePath {args.diskpath}\n")
        return 1

    try:
        try:
            fs = UnixFilesystem(disk)
        except FilesystemError as exc:
            err.write(f"{exc}\n")
            err.write("Failed to initialize unix filesystem\n")
            return 1

        if not args.quiet:
            try:
                disksize = disk.size()
            except OSError:
                err.write(f"Error getting the size of {args.diskpath}\n")
                return 1
            sb = fs.superblock
            out.write(f"Disk {args.diskpath} is {disksize} bytes ({disksize // 1024} KB)\n")
            out.write(f"Superblock s_isize {sb.isize}\n")
            out.write(f"Superblock s_fsize {sb.fsize}\n")
            out.write(f"Superblock s_nfree {sb.nfree}\n")
            out.write(f"Superblock s_ninode {sb.ninode}\n")

        if args.idump:
            dump_inode_checksums(fs, out, err)
        if args.pdump:
            dump_pathname_checksums(fs, out, err)
    finally:
        try:
            disk.close()
        except OSError:
            err.write(f"Error closing {args.diskpath}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())