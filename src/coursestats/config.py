"""Runtime settings for coursestats.

Values come from environment variables and fall back to defaults
when unset. Settings are immutable once loaded.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from coursestats.core.word_count import check_characters_per_word
from coursestats.errors import ConfigurationError

# Default database path
DEFAULT_DB_PATH = Path("data/coursestats.db")

# Average characters per word used to derive words_added
DEFAULT_CHARACTERS_PER_WORD = 5.5

# Days after a course ends during which its memberships still get cache refreshes
DEFAULT_UPDATE_GRACE_DAYS = 30


@dataclass(frozen=True)
class Settings:
    """Resolved configuration."""

    db_path: Path = DEFAULT_DB_PATH
    characters_per_word: float = DEFAULT_CHARACTERS_PER_WORD
    update_grace_days: int = DEFAULT_UPDATE_GRACE_DAYS

    def __post_init__(self) -> None:
        check_characters_per_word(self.characters_per_word)
        if self.update_grace_days < 0:
            raise ConfigurationError(
                f"update_grace_days must not be negative, got {self.update_grace_days}"
            )


def _read_env(name: str, cast, default):
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid value for {name}: {raw!r}") from e


def load_settings() -> Settings:
    """Build settings from the environment.

    Recognised variables:
        COURSESTATS_DB_PATH: SQLite database file.
        COURSESTATS_CHARACTERS_PER_WORD: Word-length heuristic divisor.
        COURSESTATS_UPDATE_GRACE_DAYS: Refresh window after a course ends.

    Raises:
        ConfigurationError: If a variable cannot be parsed or is out of range.
    """
    return Settings(
        db_path=_read_env("COURSESTATS_DB_PATH", Path, DEFAULT_DB_PATH),
        characters_per_word=_read_env(
            "COURSESTATS_CHARACTERS_PER_WORD", float, DEFAULT_CHARACTERS_PER_WORD
        ),
        update_grace_days=_read_env(
            "COURSESTATS_UPDATE_GRACE_DAYS", int, DEFAULT_UPDATE_GRACE_DAYS
        ),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return process-wide settings, loaded once."""
    return load_settings()
