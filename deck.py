"""Deck state and primitive operations for the Pontifex keystream."""
from __future__ import annotations

from collections import Counter
from typing import Iterable, Iterator

DECK_SIZE = 54
ORDINARY_CARDS = 52
JOKER_A = 53
JOKER_B = 54


class CorruptDeckError(RuntimeError):
    """Raised when a deck no longer holds a valid permutation."""


class MarkerNotFoundError(CorruptDeckError):
    """Raised when a joker value is missing from the deck."""

    def __init__(self, value: int) -> None:
        super().__init__(f"Deck is missing marker value {value}")
        self.value = value


class InsufficientMarkersError(CorruptDeckError):
    """Raised when fewer than two jokers can be found in the deck."""

    def __init__(self, found: int) -> None:
        super().__init__(f"Deck holds {found} joker(s); two are required")
        self.found = found


class InvalidKeyError(ValueError):
    """Raised when a supplied key is not a permutation of the deck values."""


def validate_key(values: Iterable[int], size: int = DECK_SIZE) -> tuple[int, ...]:
    """Return *values* as a tuple after checking it is a permutation of 1..size."""

    try:
        key = tuple(values)
    except TypeError as exc:
        raise InvalidKeyError("Key must be a sequence of integers") from exc

    for value in key:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidKeyError(f"Key contains a non-integer value: {value!r}")
    if len(key) != size:
        raise InvalidKeyError(f"Key must contain {size} values, got {len(key)}")

    out_of_range = sorted({value for value in key if not 1 <= value <= size})
    if out_of_range:
        raise InvalidKeyError(
            "Key values out of range: " + ", ".join(str(v) for v in out_of_range)
        )

    counts = Counter(key)
    duplicates = sorted(value for value, count in counts.items() if count > 1)
    if duplicates:
        missing = sorted(set(range(1, size + 1)) - set(counts))
        raise InvalidKeyError(
            "Key has duplicate values: "
            + ", ".join(str(v) for v in duplicates)
            + "; missing: "
            + ", ".join(str(v) for v in missing)
        )
    return key


class Deck:
    """A circular, 1-indexed arrangement of cards and two jokers.

    The two highest values are the jokers (53 and 54 for a full deck).  The
    constructor copies *cards* without validation so degenerate decks can be
    built on purpose; use :meth:`from_key` for untrusted input.
    """

    def __init__(self, cards: Iterable[int]) -> None:
        self._cards = list(cards)
        if len(self._cards) < 3:
            raise ValueError("A deck needs at least three positions")

    @classmethod
    def from_key(cls, key: Iterable[int]) -> "Deck":
        """Build a full-size deck from a validated *key*."""
        return cls(validate_key(key))

    @classmethod
    def ordered(cls, size: int = DECK_SIZE) -> "Deck":
        return cls(range(1, size + 1))

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[int]:
        return iter(self._cards)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Deck):
            return self._cards == other._cards
        return NotImplemented

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Deck({self._cards!r})"

    @property
    def cards(self) -> tuple[int, ...]:
        return tuple(self._cards)

    @property
    def ordinary_count(self) -> int:
        """Number of ordinary (non-joker) values in the deck."""
        return len(self._cards) - 2

    @property
    def joker_a(self) -> int:
        return len(self._cards) - 1

    @property
    def joker_b(self) -> int:
        return len(self._cards)

    @property
    def top(self) -> int:
        return self._cards[0]

    @property
    def bottom(self) -> int:
        return self._cards[-1]

    def is_joker(self, value: int) -> bool:
        return value > self.ordinary_count

    def value_at(self, position: int) -> int:
        """Return the value at 1-indexed *position*."""
        return self._cards[position - 1]

    def is_permutation(self) -> bool:
        return sorted(self._cards) == list(range(1, len(self._cards) + 1))

    def copy(self) -> "Deck":
        return Deck(self._cards)

    # ------------------------------------------------------------------
    # Primitive operations
    # ------------------------------------------------------------------
    def locate(self, value: int) -> int:
        """Return the 1-indexed position of *value*."""
        try:
            return self._cards.index(value) + 1
        except ValueError:
            raise MarkerNotFoundError(value) from None

    def locate_jokers(self) -> tuple[int, int]:
        """Return the positions of the two jokers in deck order.

        The pair is ordered by position, not by which joker sits there.
        """
        found: list[int] = []
        for index, value in enumerate(self._cards):
            if self.is_joker(value):
                found.append(index + 1)
                if len(found) == 2:
                    return found[0], found[1]
        raise InsufficientMarkersError(len(found))

    def _wrap(self, position: int) -> int:
        # Single wrap only; callers never step more than one deck past the end.
        if position > len(self._cards):
            position -= len(self._cards)
        return position

    def swap_at(self, pos1: int, pos2: int) -> None:
        """Exchange the values at two positions, wrapping past the bottom."""
        first = self._wrap(pos1) - 1
        second = self._wrap(pos2) - 1
        self._cards[first], self._cards[second] = self._cards[second], self._cards[first]

    def triple_cut(self, low: int, high: int) -> None:
        """Swap the cards above *low* with the cards below *high*.

        The slice between the two positions, both included, keeps its order.
        """
        if not 1 <= low < high <= len(self._cards):
            raise ValueError(f"Invalid triple cut positions: {low}, {high}")
        above = self._cards[: low - 1]
        middle = self._cards[low - 1 : high]
        below = self._cards[high:]
        self._cards = below + middle + above

    def count_cut(self, count: int) -> None:
        """Move the top *count* cards to just above the bottom card.

        A count that names a joker leaves the deck unchanged.
        """
        if count > self.ordinary_count:
            return
        if count < 0:
            raise ValueError("count must be non-negative")
        bottom = self._cards[-1]
        self._cards = self._cards[count:-1] + self._cards[:count] + [bottom]


__all__ = [
    "DECK_SIZE",
    "ORDINARY_CARDS",
    "JOKER_A",
    "JOKER_B",
    "CorruptDeckError",
    "MarkerNotFoundError",
    "InsufficientMarkersError",
    "InvalidKeyError",
    "validate_key",
    "Deck",
]
