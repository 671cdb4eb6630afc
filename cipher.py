"""Pontifex (Solitaire) stream cipher built on a 54-card deck."""
from __future__ import annotations

import random
from typing import Iterable, List, Optional

import codec
from deck import DECK_SIZE, Deck, validate_key
from keystream import RADIX, KeystreamGenerator


class MissingKeyError(RuntimeError):
    """Raised when a cipher operation runs before a key is installed."""


class Cipher:
    """Encrypts and decrypts lowercase letter strings with a deck key.

    The initial key is kept as an immutable snapshot.  Every operation
    resets the working deck from it, so repeated calls are independent.  A
    single instance is not safe to share between threads while a call is in
    flight; give each worker its own :class:`Cipher`.
    """

    def __init__(
        self,
        key: Optional[Iterable[int]] = None,
        *,
        generator: Optional[KeystreamGenerator] = None,
    ) -> None:
        self.generator = generator if generator is not None else KeystreamGenerator()
        self._initial_key: Optional[tuple[int, ...]] = None
        self.deck: Optional[Deck] = None
        if key is not None:
            self.load_key(key)

    # ------------------------------------------------------------------
    # Key management
    # ------------------------------------------------------------------
    @property
    def key(self) -> Optional[List[int]]:
        """Return the initial key, or ``None`` before one is installed."""
        if self._initial_key is None:
            return None
        return list(self._initial_key)

    def load_key(self, key: Iterable[int]) -> List[int]:
        """Validate *key* and install it as the initial deck."""
        self._initial_key = validate_key(key)
        self.deck = Deck(self._initial_key)
        return list(self._initial_key)

    def generate_key(self, rng: Optional[random.Random] = None) -> List[int]:
        """Shuffle a fresh key, install it and return it."""
        rng = rng if rng is not None else random.SystemRandom()
        cards = list(range(1, DECK_SIZE + 1))
        rng.shuffle(cards)
        return self.load_key(cards)

    def reset(self) -> Deck:
        """Restore the working deck to the initial key."""
        if self._initial_key is None:
            raise MissingKeyError(
                "Cipher has no key; call generate_key() or load_key() first"
            )
        self.deck = Deck(self._initial_key)
        return self.deck

    # ------------------------------------------------------------------
    # Keystream and message operations
    # ------------------------------------------------------------------
    def keystream(self, n: int, *, max_rounds: Optional[int] = None) -> List[int]:
        deck = self.reset()
        return self.generator.generate(deck, n, max_rounds=max_rounds)

    def encrypt(self, plaintext: str, *, max_rounds: Optional[int] = None) -> str:
        values = codec.to_ints(plaintext)
        stream = self.keystream(len(values), max_rounds=max_rounds)
        combined = []
        for value, offset in zip(values, stream):
            total = value + offset
            if total > RADIX:
                total -= RADIX
            combined.append(total)
        return codec.to_text(combined)

    def decrypt(self, ciphertext: str, *, max_rounds: Optional[int] = None) -> str:
        values = codec.to_ints(ciphertext)
        stream = self.keystream(len(values), max_rounds=max_rounds)
        combined = []
        for value, offset in zip(values, stream):
            total = value - offset
            if total < 1:
                total += RADIX
            combined.append(total)
        return codec.to_text(combined)


__all__ = ["Cipher", "MissingKeyError"]
