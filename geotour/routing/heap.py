"""Array-backed min-heap with arbitrary-entry removal.

Entries are arbitrary objects; their key is read through `key` every time
two entries are compared. There is no in-place decrease-key: callers
`remove` a queued entry, change its key, then `insert` it again. An entry's
key must not change while it is held.

`remove` finds entries by identity, never by equality or key.
"""

from __future__ import annotations

from operator import attrgetter
from typing import Any, Callable, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class EmptyStructureError(IndexError):
    """Raised when extracting from an empty heap."""


class MinHeap(Generic[T]):
    def __init__(self, key: Callable[[T], Any] = attrgetter("best_cost")):
        self._key = key
        self._items: List[T] = []

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entry: object) -> bool:
        return self._index_of(entry) is not None

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __repr__(self) -> str:
        return f"MinHeap(size={len(self._items)})"

    def is_empty(self) -> bool:
        return not self._items

    def insert(self, entry: T) -> None:
        self._items.append(entry)
        self._sift_up(len(self._items) - 1)

    def peek_min(self) -> Optional[T]:
        if not self._items:
            return None
        return self._items[0]

    def extract_min(self) -> T:
        if not self._items:
            raise EmptyStructureError("extract_min from an empty heap")
        top = self._items[0]
        last = self._items.pop()
        if self._items:
            self._items[0] = last
            self._sift_down(0)
        return top

    def remove(self, entry: T) -> None:
        """Remove a held entry (by identity) and restore heap order.

        Raises:
            KeyError: If the entry is not in the heap.
        """
        idx = self._index_of(entry)
        if idx is None:
            raise KeyError(f"entry not in heap: {entry!r}")

        last = self._items.pop()
        if idx == len(self._items):
            return

        self._items[idx] = last
        # The moved entry can be smaller than the hole's parent (came from another
        # subtree) or larger than the hole's children; only one of the two applies.
        if idx > 0 and self._less(idx, (idx - 1) // 2):
            self._sift_up(idx)
        else:
            self._sift_down(idx)

    def drain(self) -> List[T]:
        """Extract every entry, smallest key first."""
        out: List[T] = []
        while self._items:
            out.append(self.extract_min())
        return out

    def _index_of(self, entry: object) -> Optional[int]:
        for i, item in enumerate(self._items):
            if item is entry:
                return i
        return None

    def _less(self, i: int, j: int) -> bool:
        return self._key(self._items[i]) < self._key(self._items[j])

    def _swap(self, i: int, j: int) -> None:
        self._items[i], self._items[j] = self._items[j], self._items[i]

    def _sift_up(self, i: int) -> None:
        while i > 0:
            parent = (i - 1) // 2
            if not self._less(i, parent):
                break
            self._swap(i, parent)
            i = parent

    def _sift_down(self, i: int) -> None:
        n = len(self._items)
        while True:
            left = 2 * i + 1
            right = left + 1
            smallest = i
            if left < n and self._less(left, smallest):
                smallest = left
            if right < n and self._less(right, smallest):
                smallest = right
            if smallest == i:
                break
            self._swap(i, smallest)
            i = smallest
