"""
On-disk record schema for workspace artifacts.

The JSON files in a workspace are shared with the external agents, which
read and rewrite them freely. These models describe the fields tandem
relies on; any extra keys an agent adds are kept on round-trip.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field

CEFR_LEVELS = ("A1", "A2", "B1", "B2", "C1", "C2")


class _Record(BaseModel):
    model_config = ConfigDict(extra="allow")


# =============================================================================
# Tracked Items
# =============================================================================


class VocabularyRecord(_Record):
    """One tracked word or particle with its SM-2 state."""

    word: str
    meaning: str = ""
    ease: float = 2.5
    interval: int = 1  # Days until next review
    repetitions: int = 0  # Consecutive correct uses
    next_review: datetime.date = Field(default_factory=datetime.date.today)
    notes: str = ""

    def is_due(self, today: datetime.date | None = None) -> bool:
        """Check if this word is due for review."""
        return (today or datetime.date.today()) >= self.next_review


class GrammarRecord(_Record):
    """One tracked grammar rule with its star rating."""

    rule: str
    description: str = ""
    level: str = "A1"  # CEFR level
    stars: int = 1  # 1-5
    correct_streak: int = 0
    last_used: datetime.date = Field(default_factory=datetime.date.today)
    permanent: bool = False
    notes: str = ""


# =============================================================================
# Store Files
# =============================================================================


class VocabularyStore(_Record):
    """Contents of vocabulary.json."""

    language: str
    words: list[VocabularyRecord] = Field(default_factory=list)


class GrammarStore(_Record):
    """Contents of grammar.json."""

    language: str
    rules: list[GrammarRecord] = Field(default_factory=list)


class Preferences(_Record):
    new_vocab_per_exchange: int = 2
    show_romanization: bool = True


class Difficulty(_Record):
    level: str
    notes: str = ""


class DifficultyAdjustment(_Record):
    date: datetime.date
    direction: str
    reason: str = ""


class UserOverrides(_Record):
    """Contents of user-overrides.json."""

    language: str
    mode: str = "learning"
    preferences: Preferences = Field(default_factory=Preferences)
    notes: str = ""
    difficulty: Difficulty | None = None
    adjustments: list[DifficultyAdjustment] = Field(default_factory=list)


class LanguageConfig(_Record):
    """Contents of config.json."""

    language: str
    native_script: str
    romanization: str
    started: datetime.date
