"""Resource lists: intrusive, circular, doubly-linked rings built on splicing.

A node used as a sentinel represents a list; the ring ``[C, L, A, B]`` with
sentinel ``L`` is the list ``A, B, C``. An empty list is the singleton ring
``[L]``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any


class RLNode:
    """A node of a circular doubly-linked ring, carrying an arbitrary key."""

    __slots__ = ("key", "prev", "next")

    def __init__(self, key: Any = None) -> None:
        self.key = key
        self.prev: RLNode = self
        self.next: RLNode = self

    def __repr__(self) -> str:
        return f"RLNode({self.key!r})"

    def __bool__(self) -> bool:
        # A node is always a real object, even when its ring is empty.
        return True

    def splice(self, other: RLNode) -> RLNode:
        """Swap the ``next`` pointers of two nodes, fixing ``prev`` links.

        Splicing nodes of different rings joins them; splicing nodes of
        the same ring splits it. Returns ``other``.
        """
        self.next.prev, other.next.prev = other.next.prev, self.next.prev
        self.next, other.next = other.next, self.next
        return other

    def remove(self) -> RLNode:
        """Detach this node from its ring, leaving it a singleton."""
        self.splice(self.prev)
        return self

    def is_empty(self) -> bool:
        """Whether the list headed by this sentinel has no elements."""
        return self.next is self

    def push_front(self, node: RLNode) -> None:
        """Insert the ring of ``node`` at the head of this list."""
        self.splice(node)

    def push_back(self, node: RLNode) -> None:
        """Insert the ring of ``node`` at the tail of this list."""
        self.prev.splice(node)

    def pop_front(self) -> RLNode:
        """Remove and return the head; an empty list returns itself."""
        return self.splice(self.next)

    def pop_back(self) -> RLNode:
        """Remove and return the tail; an empty list returns itself."""
        return self.splice(self.prev)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __iter__(self) -> Iterator[RLNode]:
        node = self.next
        while node is not self:
            following = node.next
            yield node
            node = following

    def equal(self, other: RLNode) -> bool:
        """Whether two lists hold equal keys in the same order."""
        mine, theirs = self.next, other.next
        while mine is not self:
            if theirs is other or mine.key != theirs.key:
                return False
            mine, theirs = mine.next, theirs.next
        return theirs is other

    def append(self, other: RLNode) -> None:
        """Move all elements of list ``other`` to the end of this list."""
        self.push_back(other)
        other.remove()

    def prepend(self, other: RLNode) -> None:
        """Move all elements of list ``other`` to the front of this list."""
        self.push_front(other)
        other.remove()

    def reverse(self) -> None:
        """Reverse the direction of the ring."""
        node = self
        while True:
            node.prev, node.next = node.next, node.prev
            node = node.next
            if node is self:
                break

    def find(self, key: Any, fail: RLNode | None = None) -> RLNode | None:
        """Return the first element whose key equals ``key``, else ``fail``."""
        return next((node for node in self if node.key == key), fail)

    def select(self, dest: RLNode, pred: Callable[[RLNode], bool]) -> None:
        """Move every element satisfying ``pred`` to the end of ``dest``."""
        for node in self:
            if pred(node):
                dest.push_back(node.remove())