# syslab

Three small systems tools in one pure-Python package:

- a reader for **Unix Version 6 disk images** (`syslab.diskimg`,
  `syslab.layout`, `syslab.filesystem`, `syslab.checksum`,
  `syslab.diskaccess`): superblock, inodes, small and large file block
  mapping, directories, path lookup and per-file SHA-1 checksums;
- a doubly linked **string list** whose nodes carry a type tag, with
  concatenation filtered by type (`syslab.strproc`);
- a **shell for an ARM instruction-level simulator**, with word-addressed
  memory regions, register state and dump commands (`syslab.armsim`).

It needs nothing outside the standard library.

## Installing

```
pip install .
```

Install with the `test` extra (`pip install .[test]`) to run the test suite
with pytest.

## Inspecting a V6 disk image

```
v6fs-access [-q] [-i] [-p] diskimagePath
```

- `-q` leaves out the disk size and superblock summary
- `-i` prints the checksum of every allocated inode
- `-p` walks the directory tree from `/` and prints the checksum of every path

Any other option, or a missing or extra image path, prints a usage message and
exits with status 1. The image is opened read-only.

Output lines have these forms (mode in hexadecimal, size in bytes, checksum
as 40 hexadecimal digits):

```
Inode <inumber> mode 0x<mode> size <size> checksum <sha1>
Path <pathname> <inumber> mode 0x<mode> size <size> checksum <sha1>
```

The same dumps are available as functions taking an open filesystem and two
text streams: `syslab.diskaccess.dump_inode_checksums(fs, out, err)`,
`dump_pathname_checksums(fs, out, err)`, and
`print_directory(fs, pathname, out, err)`, which lists the entries of one
directory.

From Python:

```python
from syslab.filesystem import UnixFilesystem
from syslab.checksum import checksum_by_pathname, checksum_to_string

with UnixFilesystem.open("disk.img") as fs:
    inumber = fs.lookup("/etc/passwd")
    inode = fs.iget(inumber)
    print(inumber, inode.size(), inode.is_directory())
    print(checksum_to_string(checksum_by_pathname(fs, "/etc/passwd")))
    for entry in fs.dir_entries(1):
        print(entry.inumber, entry.name())
```

`UnixFilesystem` also offers `get_block(inumber, block_num)`, returning the
valid bytes of one file block, `index_lookup(inode, block_num)`, returning
the disk sector that holds it, and `find_name(name, dir_inumber)`.

Lookups that fail (a bad magic number, a missing name, an unallocated inode,
a block past the end of a file) raise `syslab.layout.FilesystemError`.

`syslab.diskimg.DiskImage` gives raw 512-byte sector access to an image file,
including `write_sector` when opened with `read_only=False`.

## The string list

```python
from syslab.strproc import StringProcList

items = StringProcList()
items.add_node(0, "hola")
items.add_node(1, "skip")
items.add_node(0, "todos!")
print(items.concat(0, "hash"))   # hashholatodos!
print(len(items))                # 3
```

Type tags must lie between 0 and 255; anything else raises `ValueError`.
The list iterates forwards and, with `reversed()`, backwards.
`write_to(file)` prints the length and every node's hash and type.

## The ARM simulator shell

```
arm-sim program_file [program_file ...]
```

A program file holds hexadecimal instruction words separated by whitespace,
loaded from address `0x00400000`. Each file named is loaded in turn at that
same address. At the `ARM-SIM>` prompt, commands are read from standard
input:

```
go               run program to completion
run n            execute program for n instructions
mdump low high   dump memory from low to high
rdump            dump the register & bus values
input reg_no reg_value   set a general register (value in hexadecimal)
?                display the help menu
quit             exit the program
```

Memory and register dumps are also written to a file named `dumpsim` in the
current directory, which is created afresh each time the shell starts.

## What it does not do

- The simulator decodes no instructions: `Simulator.process_instruction`
  leaves the machine state unchanged, and nothing ever clears the run bit, so
  `go` does not return. Use `run n` to step. Decoding can be added by
  overriding `process_instruction` in a subclass.
- The disk image tools only read filesystems; nothing creates files,
  directories or inodes, or allocates blocks.