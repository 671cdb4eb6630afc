"""Round engine and keystream generator for the Pontifex deck cipher."""
from __future__ import annotations

import logging
from typing import List, Optional

from deck import CorruptDeckError, Deck

RADIX = 26

LOGGER = logging.getLogger("keystream")


class KeystreamLimitError(RuntimeError):
    """Raised when a keystream request exceeds its round ceiling."""

    def __init__(self, rounds: int, collected: int, requested: int) -> None:
        super().__init__(
            f"Round ceiling of {rounds} reached with {collected}/{requested} "
            "keystream values collected"
        )
        self.rounds = rounds
        self.collected = collected
        self.requested = requested


class RoundEngine:
    """Applies one round of the five-step deck rules.

    Each step mutates the deck in place.  A round whose output lands on a
    joker is void and keeps its mutations.
    """

    # ------------------------------------------------------------------
    # Individual steps
    # ------------------------------------------------------------------
    def move_joker_a(self, deck: Deck) -> None:
        position = deck.locate(deck.joker_a)
        deck.swap_at(position, position + 1)

    def move_joker_b(self, deck: Deck) -> None:
        position = deck.locate(deck.joker_b)
        deck.swap_at(position, position + 1)
        deck.swap_at(position + 1, position + 2)

    def triple_cut(self, deck: Deck) -> None:
        low, high = deck.locate_jokers()
        deck.triple_cut(low, high)

    def count_cut(self, deck: Deck) -> None:
        deck.count_cut(deck.bottom)

    def output(self, deck: Deck) -> Optional[int]:
        """Return the output value for the current deck, or ``None`` if void."""
        index = deck.top
        if not 1 <= index <= len(deck):
            raise CorruptDeckError(f"Top card value {index} is not a deck position")
        candidate = deck.value_at(index)
        if deck.is_joker(candidate):
            return None
        if candidate > RADIX:
            candidate -= RADIX
        return candidate

    # ------------------------------------------------------------------
    # Round
    # ------------------------------------------------------------------
    def run(self, deck: Deck) -> Optional[int]:
        self.move_joker_a(deck)
        self.move_joker_b(deck)
        self.triple_cut(deck)
        self.count_cut(deck)
        return self.output(deck)


class KeystreamGenerator:
    """Collects keystream values by running rounds until enough are produced."""

    def __init__(self, engine: Optional[RoundEngine] = None) -> None:
        self.engine = engine if engine is not None else RoundEngine()
        self.rounds = 0
        self.void_rounds = 0

    def generate(
        self, deck: Deck, n: int, *, max_rounds: Optional[int] = None
    ) -> List[int]:
        """Return *n* keystream values drawn from *deck*.

        Void rounds are retried with the deck state carried forward.  The loop
        has no limit unless *max_rounds* is given, in which case
        :class:`KeystreamLimitError` is raised once that many rounds have run
        without collecting *n* values.
        """

        if n < 0:
            raise ValueError("Keystream length must be non-negative")
        if max_rounds is not None and max_rounds < 0:
            raise ValueError("max_rounds must be non-negative")

        self.rounds = 0
        self.void_rounds = 0
        keystream: List[int] = []
        while len(keystream) < n:
            if max_rounds is not None and self.rounds >= max_rounds:
                LOGGER.debug(
                    "Stopping after %d rounds (%d void)", self.rounds, self.void_rounds
                )
                raise KeystreamLimitError(self.rounds, len(keystream), n)
            self.rounds += 1
            value = self.engine.run(deck)
            if value is None:
                self.void_rounds += 1
                continue
            keystream.append(value)

        LOGGER.debug(
            "Generated %d values in %d rounds (%d void)",
            n,
            self.rounds,
            self.void_rounds,
        )
        return keystream


__all__ = [
    "RADIX",
    "KeystreamLimitError",
    "RoundEngine",
    "KeystreamGenerator",
]
