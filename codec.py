"""Letter <-> integer mapping used by the cipher (a=1 ... z=26)."""
from __future__ import annotations

from typing import Iterable

_BELOW_A = ord("a") - 1


def to_ints(text: str) -> list[int]:
    """Map each lowercase letter in *text* to its 1..26 value."""
    return [ord(char) - _BELOW_A for char in text]


def to_text(values: Iterable[int]) -> str:
    return "".join(chr(value + _BELOW_A) for value in values)


__all__ = ["to_ints", "to_text"]
