"""Two-way lookup map."""

from __future__ import annotations

from typing import Generic, Hashable, Iterable, TypeVar

L = TypeVar("L", bound=Hashable)
R = TypeVar("R", bound=Hashable)


class UnorderedBimap(Generic[L, R]):
    """A bidirectional hash map built from (left, right) pairs."""

    def __init__(self, pairs: Iterable[tuple[L, R]]) -> None:
        self._left: dict[L, R] = {}
        self._right: dict[R, L] = {}
        for left, right in pairs:
            self._left[left] = right
            self._right[right] = left

    def by_left(self, key: L) -> R:
        """Return the right value paired with a left key."""
        return self._left[key]

    def by_right(self, key: R) -> L:
        """Return the left value paired with a right key."""
        return self._right[key]

    def at(self, key: L | R) -> L | R:
        """Look a key up on the left side first, then on the right."""
        if key in self._left:
            return self._left[key]
        if key in self._right:
            return self._right[key]
        raise KeyError(key)