from __future__ import annotations

import threading
from typing import Iterable, Iterator, Tuple


class ConcurrentNameSet:
    """
    Brief: Copy-on-write set of names shared between resolutions.

    Writers serialize on a lock and publish a fresh immutable tuple; readers
    grab whatever tuple is current without locking, so a resolution that has
    already taken its snapshot is unaffected by later mutations.

    Inputs:
      - names: Optional initial names, kept in insertion order.

    Outputs:
      - ConcurrentNameSet instance.

    Example:
      >>> s = ConcurrentNameSet(["udp", "tcp"])
      >>> s.add("sctp")
      True
      >>> s.snapshot()
      ('udp', 'tcp', 'sctp')
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        items: list[str] = []
        for name in names:
            if name not in items:
                items.append(name)
        self._items: Tuple[str, ...] = tuple(items)

    def add(self, name: str) -> bool:
        """Brief: Add name; returns False when it was already present."""

        with self._lock:
            if name in self._items:
                return False
            self._items = self._items + (name,)
            return True

    def remove(self, name: str) -> bool:
        """Brief: Remove name; returns False when it was not present."""

        with self._lock:
            if name not in self._items:
                return False
            self._items = tuple(n for n in self._items if n != name)
            return True

    def contains(self, name: str) -> bool:
        return name in self._items

    def snapshot(self) -> Tuple[str, ...]:
        """Brief: Return the current membership in insertion order."""

        return self._items

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"ConcurrentNameSet({list(self._items)!r})"
