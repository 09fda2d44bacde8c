"""A doubly linked list of typed strings that can be folded into one string."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, TextIO

MAX_TYPE_VALUE = 0xFF


def _check_type(type: int) -> int:
    if not 0 <= type <= MAX_TYPE_VALUE:
        raise ValueError(f"type must be between 0 and {MAX_TYPE_VALUE}, got {type}")
    return type


@dataclass(eq=False)
class StringProcNode:
    """One string in the list, tagged with a small integer type."""

    type: int
    hash: str
    next: StringProcNode | None = field(default=None, repr=False)
    previous: StringProcNode | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        _check_type(self.type)


class StringProcList:
    """Typed strings kept in insertion order, linked in both directions."""

    def __init__(self) -> None:
        self.first: StringProcNode | None = None
        self.last: StringProcNode | None = None
        self._length = 0

    def add_node(self, type: int, hash: str) -> StringProcNode:
        """Append a new node holding ``hash`` with the given type."""
        node = StringProcNode(type, hash)
        if self.last is None:
            self.first = node
        else:
            node.previous = self.last
            self.last.next = node
        self.last = node
        self._length += 1
        return node

    def concat(self, type: int, hash: str) -> str:
        """Return ``hash`` followed by the strings of every node of ``type``, in order."""
        _check_type(type)
        return hash + "".join(node.hash for node in self if node.type == type)

    def __iter__(self) -> Iterator[StringProcNode]:
        node = self.first
        while node is not None:
            yield node
            node = node.next

    def __reversed__(self) -> Iterator[StringProcNode]:
        node = self.last
        while node is not None:
            yield node
            node = node.previous

    def __len__(self) -> int:
        return self._length

    def write_to(self, file: TextIO) -> None:
        """Write the list length and every node to ``file``."""
        file.write(f"List length: {len(self)}\n")
        for node in self:
            file.write(f"\tnode hash: {node.hash} | type: {node.type}\n")