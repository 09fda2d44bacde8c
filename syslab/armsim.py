"""An instruction-level ARM simulator shell: memory, CPU state and a command loop."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from typing import Iterable, Iterator, TextIO

MEM_DATA_START = 0x10000000
MEM_DATA_SIZE = 0x00100000
MEM_TEXT_START = 0x00400000
MEM_TEXT_SIZE = 0x00100000
MEM_STACK_START = 0xFFFFFFFC
MEM_STACK_SIZE = 0x00100000

ARM_REGS = 32

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

_INT_AUTO = re.compile(r"[+-]?(?:0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")
_INT_DEC = re.compile(r"[+-]?[0-9]+")
_INT_HEX = re.compile(r"[+-]?(?:0[xX])?[0-9a-fA-F]+")
_SPACE = re.compile(r"\s*")

_HELP = (
    "----------------ARM ISIM Help-----------------------\n"
    "go               -  run program to completion         \n"
    "run n            -  execute program for n instructions\n"
    "mdump low high   -  dump memory from low to high      \n"
    "rdump            -  dump the register & bus values    \n"
    "input reg_no reg_value - set GPR reg_no to reg_value  \n"
    "?                -  display this help menu            \n"
    "quit             -  exit the program                  \n\n"
)


def _wrap(value: int, bits: int) -> int:
    """Reduce ``value`` to a signed integer of ``bits`` bits."""
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _scan_int(token: str, pattern: re.Pattern[str], base: int) -> int | None:
    """Parse the leading integer of ``token`` the way scanf would, or return None."""
    match = pattern.match(token)
    if match is None:
        return None
    text = match.group()
    sign = -1 if text.startswith("-") else 1
    body = text.lstrip("+-")
    if base == 0:
        if body[:2].lower() == "0x":
            base = 16
        elif len(body) > 1 and body.startswith("0"):
            base = 8
        else:
            base = 10
    if base == 16 and body[:2].lower() == "0x":
        body = body[2:]
    return sign * int(body, base)


@dataclass
class _Region:
    start: int
    size: int
    mem: bytearray

    def offset_of(self, address: int) -> int | None:
        if self.start <= address < self.start + self.size:
            return address - self.start
        return None


class Memory:
    """Text, data and stack regions addressed as little-endian 32-bit words."""

    def __init__(self) -> None:
        # Three spare bytes per region keep unaligned accesses at the end in bounds.
        self._regions = [
            _Region(start, size, bytearray(size + 3))
            for start, size in (
                (MEM_TEXT_START, MEM_TEXT_SIZE),
                (MEM_DATA_START, MEM_DATA_SIZE),
                (MEM_STACK_START, MEM_STACK_SIZE),
            )
        ]

    def _locate(self, address: int) -> tuple[_Region, int] | None:
        address &= _MASK64
        for region in self._regions:
            offset = region.offset_of(address)
            if offset is not None:
                return region, offset
        return None

    def read_32(self, address: int) -> int:
        """Read a word; addresses outside every region read as 0."""
        found = self._locate(address)
        if found is None:
            return 0
        region, offset = found
        return int.from_bytes(region.mem[offset:offset + 4], "little")

    def write_32(self, address: int, value: int) -> None:
        """Write a word; writes outside every region are dropped."""
        found = self._locate(address)
        if found is None:
            return
        region, offset = found
        region.mem[offset:offset + 4] = (value & _MASK32).to_bytes(4, "little")


@dataclass
class CPUState:
    """Program counter, general registers and condition flags."""

    pc: int = 0
    regs: list[int] = field(default_factory=lambda: [0] * ARM_REGS)
    flag_n: int = 0
    flag_z: int = 0


def _copy_state(state: CPUState) -> CPUState:
    return CPUState(state.pc, list(state.regs), state.flag_n, state.flag_z)


class Simulator:
    """Holds the machine state and carries out the shell's commands."""

    def __init__(self, out: TextIO | None = None, dump: TextIO | None = None) -> None:
        self.out = sys.stdout if out is None else out
        self.dump = dump
        self.memory = Memory()
        self.current_state = CPUState()
        self.next_state = CPUState()
        self.run_bit = False
        self.instruction_count = 0

    def _say(self, text: str) -> None:
        self.out.write(text)

    def _say_and_dump(self, text: str) -> None:
        self.out.write(text)
        if self.dump is not None:
            self.dump.write(text)

    def process_instruction(self) -> None:
        """Execute one instruction, writing its effects into ``next_state``.

        No instructions are decoded, so the next state is the current one.
        """
        self.next_state = _copy_state(self.current_state)

    def load_program(self, path: str) -> int:
        """Load hexadecimal words from ``path`` into text memory; return the count.

        Raises OSError if the file cannot be opened and ValueError if it is malformed.
        """
        with open(path, "r") as handle:
            text = handle.read()
        count = 0
        pos = 0
        while True:
            pos = _SPACE.match(text, pos).end()
            if pos >= len(text):
                break
            match = _INT_HEX.match(text, pos)
            if match is None:
                raise ValueError(f"Malformed program file {path}")
            value = _scan_int(match.group(), _INT_HEX, 16)
            self.memory.write_32(MEM_TEXT_START + 4 * count, value)
            count += 1
            pos = match.end()
        self.current_state.pc = MEM_TEXT_START
        self._say(f"Read {count} words from program into memory.\n\n")
        self.next_state = _copy_state(self.current_state)
        self.run_bit = True
        return count

    def cycle(self) -> None:
        """Execute one instruction and latch the new state."""
        self.process_instruction()
        self.current_state = _copy_state(self.next_state)
        self.instruction_count += 1

    def run(self, num_cycles: int) -> None:
        """Simulate for ``num_cycles`` instructions or until halted."""
        if not self.run_bit:
            self._say("Can't simulate, Simulator is halted\n\n")
            return
        self._say(f"Simulating for {num_cycles} cycles...\n\n")
        for _ in range(num_cycles):
            if not self.run_bit:
                self._say("Simulator halted\n\n")
                break
            self.cycle()

    def go(self) -> None:
        """Simulate until the run bit is cleared."""
        if not self.run_bit:
            self._say("Can't simulate, Simulator is halted\n\n")
            return
        self._say("Simulating...\n\n")
        while self.run_bit:
            self.cycle()
        self._say("Simulator halted\n\n")

    def mdump(self, start: int, stop: int) -> None:
        """Dump the words from ``start`` to ``stop`` to the output and the dump file."""
        start, stop = _wrap(start, 32), _wrap(stop, 32)
        lines = [
            f"\nMemory content [0x{start & _MASK32:08x}..0x{stop & _MASK32:08x}] :\n",
            "-------------------------------------\n",
        ]
        for address in range(start, stop + 1, 4):
            lines.append(
                f"  0x{address & _MASK32:08x} ({address}) : "
                f"0x{self.memory.read_32(address):x}\n"
            )
        lines.append("\n")
        self._say_and_dump("".join(lines))

    def rdump(self) -> None:
        """Dump the instruction count, PC, registers and flags."""
        state = self.current_state
        lines = [
            "\nCurrent register/bus values :\n",
            "-------------------------------------\n",
            f"Instruction Count : {self.instruction_count & _MASK32}\n",
            f"PC                : 0x{state.pc & _MASK64:x}\n",
            "Registers:\n",
        ]
        lines.extend(f"X{k}: 0x{value & _MASK64:x}\n" for k, value in enumerate(state.regs))
        lines.append(f"FLAG_N: {state.flag_n}\n")
        lines.append(f"FLAG_Z: {state.flag_z}\n")
        lines.append("\n")
        self._say_and_dump("".join(lines))

    def help(self) -> None:
        """Print the list of commands."""
        self._say(_HELP)

    def execute(self, tokens: Iterable[str]) -> bool:
        """Read one command and its arguments from ``tokens`` and carry it out.

        Returns False when the shell should stop: on quit or when input runs out.
        """
        stream: Iterator[str] = iter(tokens)
        command = next(stream, None)
        if command is None:
            return False
        self._say("\n")
        head = command[0]
        key = head.lower()
        if key == "g":
            self.go()
        elif key == "m":
            start = _scan_int(next(stream, ""), _INT_AUTO, 0)
            stop = None if start is None else _scan_int(next(stream, ""), _INT_AUTO, 0)
            if start is not None and stop is not None:
                self.mdump(start, stop)
        elif head == "?":
            self.help()
        elif key == "q":
            self._say("Bye.\n")
            return False
        elif key == "r":
            if command[1:2].lower() == "d":
                self.rdump()
            else:
                cycles = _scan_int(next(stream, ""), _INT_DEC, 10)
                if cycles is not None:
                    self.run(_wrap(cycles, 32))
        elif key == "i":
            register = _scan_int(next(stream, ""), _INT_AUTO, 0)
            value = None if register is None else _scan_int(next(stream, ""), _INT_HEX, 16)
            if register is not None and value is not None and 0 <= register < ARM_REGS:
                value = _wrap(value, 64)
                self.current_state.regs[register] = value
                self.next_state.regs[register] = value
        else:
            self._say("Invalid Command\n")
        return True


def _stdin_tokens() -> Iterator[str]:
    for line in sys.stdin:
        yield from line.split()


def main(argv: list[str] | None = None) -> int:
    """Command entry point; returns the process exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout
    if not args:
        out.write("Error: usage: sim <program_file_1> <program_file_2> ...\n")
        return 1

    out.write("ARM Simulator\n\n")
    try:
        dump_file = open("dumpsim", "w")
    except OSError:
        out.write("Error: Can't open dumpsim file\n")
        return 255

    with dump_file:
        sim = Simulator(out, dump_file)
        for path in args:
            try:
                sim.load_program(path)
            except OSError:
                out.write(f"Error: Can't open program file {path}\n")
                return 255
            except ValueError:
                out.write(f"Error: Malformed program file {path}\n")
                return 255

        tokens = _stdin_tokens()
        while True:
            out.write("ARM-SIM> ")
            out.flush()
            if not sim.execute(tokens):
                return 0


if __name__ == "__main__":
    sys.exit(main())