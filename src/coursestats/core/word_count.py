"""Approximate word counts from character counts."""

from __future__ import annotations

import math

from coursestats.errors import ConfigurationError


def check_characters_per_word(characters_per_word: float) -> float:
    """Return characters_per_word if it is a finite positive number.

    Raises:
        ConfigurationError: For zero, negative, infinite or NaN values.
    """
    if not math.isfinite(characters_per_word) or characters_per_word <= 0:
        raise ConfigurationError(
            f"characters_per_word must be a finite positive number, got {characters_per_word}"
        )
    return characters_per_word


def words_from_characters(characters: int, characters_per_word: float) -> int:
    """Estimate words added from characters added.

    Divides by the average word length and rounds down. A net
    character loss yields 0 rather than a negative word count.

    Args:
        characters: Signed sum of character deltas.
        characters_per_word: Average characters per word, finite and > 0.

    Returns:
        Non-negative integer word estimate.
    """
    check_characters_per_word(characters_per_word)
    if characters <= 0:
        return 0
    return math.floor(characters / characters_per_word)
