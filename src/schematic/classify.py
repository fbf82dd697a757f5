"""classify.py - Character classifiers for the token scanner.

A classifier decides which characters belong to a run. The scanner is
generic over it, so one scan loop finds numeric tokens and marker tokens.

- DIGIT: ASCII decimal digit
- SYMBOL: anything that is neither a digit nor the background sentinel
- marker(ch): exactly one given character (GEAR = marker('*'))
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable
import numpy as np
from .config import BACKGROUND, DIGITS, GEAR_MARKER


@dataclass(frozen=True)
class Classifier:
    """Named single-character predicate.

    Attributes:
        name: Label used in receipts and error messages
        predicate: Callable taking one character, returning bool
    """

    name: str
    predicate: Callable[[str], bool]

    def __call__(self, ch: str) -> bool:
        return bool(self.predicate(ch))

    def mask(self, data: np.ndarray) -> np.ndarray:
        """Evaluate the predicate over a whole character array.

        Args:
            data: Character array of any shape

        Returns:
            Bool array of the same shape
        """
        if data.size == 0:
            return np.zeros(data.shape, dtype=bool)
        return np.vectorize(self.__call__, otypes=[bool])(data)


def _is_digit(ch: str) -> bool:
    return len(ch) == 1 and ch in DIGITS


def _is_symbol(ch: str) -> bool:
    return len(ch) == 1 and ch not in DIGITS and ch != BACKGROUND


DIGIT = Classifier("digit", _is_digit)
SYMBOL = Classifier("symbol", _is_symbol)


def marker(ch: str) -> Classifier:
    """Build a classifier matching exactly one marker character.

    Raises:
        ValueError: If ch is not a single symbol character
    """
    if not _is_symbol(ch):
        raise ValueError(
            f"Marker must be a single non-digit, non-background character, got {ch!r}"
        )
    return Classifier(f"marker:{ch}", lambda c: c == ch)


GEAR = marker(GEAR_MARKER)
