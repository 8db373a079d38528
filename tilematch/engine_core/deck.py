"""
Deck - Symbol alphabet and shuffled pair generation.

A deck of N pairs is built by:
1. Sampling N distinct symbols from the alphabet (no replacement)
2. Duplicating each symbol
3. Shuffling the 2N tiles into a uniformly random order

Asking for more pairs than the alphabet has symbols is a configuration
bug and raises DeckConfigurationError. There is no adjacency rule:
two tiles of a pair may land side by side.
"""

from __future__ import annotations
from collections import Counter
from typing import Sequence
import random

from ..errors import DeckConfigurationError
from .state import Tile

SUITS = ("Man", "Sou", "Pin")

# Mahjong tile faces: Man1..Man9, Sou1..Sou9, Pin1..Pin9
DEFAULT_ALPHABET: tuple[str, ...] = tuple(
    f"{suit}{rank}" for suit in SUITS for rank in range(1, 10)
)


def validate_alphabet(alphabet: Sequence[str], pair_count: int) -> None:
    """
    Check that `pair_count` pairs can be drawn from `alphabet`.

    Raises:
        DeckConfigurationError: on duplicate symbols, a non-positive
            pair count, or more pairs than distinct symbols
    """
    duplicates = sorted(s for s, n in Counter(alphabet).items() if n > 1)
    if duplicates:
        raise DeckConfigurationError(f"Alphabet has duplicate symbols: {duplicates}")

    if pair_count < 1:
        raise DeckConfigurationError(f"pair_count must be at least 1, got {pair_count}")

    if pair_count > len(alphabet):
        raise DeckConfigurationError(
            f"Cannot deal {pair_count} pairs from an alphabet of {len(alphabet)} symbols"
        )


def generate_deck(
    pair_count: int,
    alphabet: Sequence[str] = DEFAULT_ALPHABET,
    rng: random.Random | None = None,
) -> list[Tile]:
    """
    Deal a fresh shuffled deck.

    Args:
        pair_count: Number of distinct symbols (deck size is 2N)
        alphabet: Symbols to choose from
        rng: Random source, for reproducible deals

    Returns:
        2 * pair_count face-down tiles in shuffled order
    """
    validate_alphabet(alphabet, pair_count)
    rng = rng or random.Random()

    chosen = rng.sample(list(alphabet), pair_count)
    symbols = chosen + chosen
    rng.shuffle(symbols)

    return [Tile(symbol=s) for s in symbols]


def deck_from_symbols(symbols: Sequence[str]) -> list[Tile]:
    """
    Build a deck in a fixed order (for replays and tests).

    Every symbol must appear exactly twice.
    """
    counts = Counter(symbols)
    unpaired = sorted(s for s, n in counts.items() if n != 2)
    if not symbols or unpaired:
        raise DeckConfigurationError(
            f"Every symbol must appear exactly twice; offending symbols: {unpaired}"
        )
    return [Tile(symbol=s) for s in symbols]
