"""
SM-2 Progress Policy for tracked vocabulary and grammar.

Implements:
- SM-2 correct-use transition for vocabulary (interval growth by ease)
- Explicit recall grading (forgot / hard / good / easy)
- Star rating for grammar rules driven by the correct-use streak
- A ledger that applies the policy to a workspace's JSON stores

SM-2 correct use:
    repetitions += 1
    repetitions == 1  -> interval = 1
    repetitions == 2  -> interval = 6
    repetitions >= 3  -> interval = round(interval * ease)
    next_review = today + interval days

The tracker agent applies the same rules when it edits the stores itself;
the ledger lets the CLI (or the agent, through the CLI) apply them
deterministically.
"""

from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from pathlib import Path
from typing import TypeVar

from loguru import logger
from pydantic import BaseModel

from .exceptions import InputValidationError, NotFoundError, WorkspaceIOError
from .schemas import (
    CEFR_LEVELS,
    Difficulty,
    DifficultyAdjustment,
    GrammarRecord,
    GrammarStore,
    UserOverrides,
    VocabularyRecord,
    VocabularyStore,
)
from .templates import GRAMMAR_FILE, OVERRIDES_FILE, VOCABULARY_FILE
from .workspace import Workspace

# =============================================================================
# Configuration
# =============================================================================


@dataclass
class SM2Config:
    """Configuration for the vocabulary SM-2 variant."""

    initial_easiness: float = 2.5
    minimum_easiness: float = 1.3
    first_interval: int = 1  # Days after the first correct use
    second_interval: int = 6  # Days after the second correct use


@dataclass
class GrammarConfig:
    """Configuration for grammar star ratings."""

    max_stars: int = 5
    streak_per_star: int = 3  # One star per three consecutive correct uses
    permanent_streak: int = 5  # Streak needed at max stars to mark permanent


class RecallQuality(str, Enum):
    """Self-assessed recall quality for an explicit review."""

    FORGOT = "forgot"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"


DIFFICULTY_DIRECTIONS = ("easier", "harder", "auto", *CEFR_LEVELS)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# =============================================================================
# Policy
# =============================================================================


class ProgressPolicy:
    """
    Pure state transitions for tracked items.

    Every method returns a new record; inputs are never mutated.
    """

    def __init__(
        self,
        sm2: SM2Config | None = None,
        grammar: GrammarConfig | None = None,
    ):
        self.sm2 = sm2 or SM2Config()
        self.grammar = grammar or GrammarConfig()

    # -------------------------------------------------------------------------
    # Vocabulary
    # -------------------------------------------------------------------------

    def new_word(self, word: str, meaning: str = "", today: date | None = None) -> VocabularyRecord:
        """A word on its first observed use: one repetition, due tomorrow."""
        today = today or date.today()
        return VocabularyRecord(
            word=word,
            meaning=meaning,
            ease=self.sm2.initial_easiness,
            interval=self.sm2.first_interval,
            repetitions=1,
            next_review=today + timedelta(days=self.sm2.first_interval),
        )

    def apply_correct_use(self, item: VocabularyRecord, today: date | None = None) -> VocabularyRecord:
        """
        Advance a word after one confirmed correct use.

        Ease is left unchanged on this path.
        """
        today = today or date.today()
        repetitions = item.repetitions + 1

        if repetitions == 1:
            interval = self.sm2.first_interval
        elif repetitions == 2:
            interval = self.sm2.second_interval
        else:
            interval = max(1, _round_half_up(item.interval * item.ease))

        return item.model_copy(
            update={
                "repetitions": repetitions,
                "interval": interval,
                "next_review": today + timedelta(days=interval),
            }
        )

    def apply_recall(
        self,
        item: VocabularyRecord,
        quality: RecallQuality,
        today: date | None = None,
    ) -> VocabularyRecord:
        """
        Grade an explicit review of a word.

        forgot: ease -0.20, interval cut to a tenth, repetitions reset
        hard:   ease -0.15, interval * 1.2
        good:   interval * ease
        easy:   ease +0.15, interval * ease * 1.3
        """
        today = today or date.today()
        quality = RecallQuality(quality)
        ease = item.ease
        repetitions = item.repetitions + 1

        if quality is RecallQuality.FORGOT:
            ease = max(ease - 0.20, self.sm2.minimum_easiness)
            interval = math.floor(item.interval * 0.1)
            repetitions = 0
        elif quality is RecallQuality.HARD:
            ease = max(ease - 0.15, self.sm2.minimum_easiness)
            interval = math.floor(item.interval * 1.2)
        elif quality is RecallQuality.GOOD:
            interval = math.floor(item.interval * ease)
        else:
            ease = ease + 0.15
            interval = math.floor(item.interval * ease * 1.3)

        interval = max(1, interval)
        return item.model_copy(
            update={
                "ease": round(ease, 2),
                "interval": interval,
                "repetitions": repetitions,
                "next_review": today + timedelta(days=interval),
            }
        )

    # -------------------------------------------------------------------------
    # Grammar
    # -------------------------------------------------------------------------

    def new_rule(
        self,
        rule: str,
        description: str = "",
        level: str = "A1",
        today: date | None = None,
        correct_streak: int = 0,
    ) -> GrammarRecord:
        return GrammarRecord(
            rule=rule,
            description=description,
            level=level,
            stars=1,
            correct_streak=correct_streak,
            last_used=today or date.today(),
        )

    def stars_for_streak(self, streak: int) -> int:
        """Star rating earned by a streak; non-decreasing in streak length."""
        return min(self.grammar.max_stars, 1 + max(streak, 0) // self.grammar.streak_per_star)

    def apply_grammar_use(
        self,
        item: GrammarRecord,
        correct: bool = True,
        today: date | None = None,
    ) -> GrammarRecord:
        """
        Update a rule after the learner used it.

        A correct use extends the streak and can only raise the rating.
        An incorrect use (explicit grading only) resets the streak and
        drops one star.
        """
        today = today or date.today()

        if correct:
            streak = item.correct_streak + 1
            stars = max(item.stars, self.stars_for_streak(streak))
            stars = min(stars, self.grammar.max_stars)
            permanent = item.permanent or (
                stars == self.grammar.max_stars and streak >= self.grammar.permanent_streak
            )
        else:
            streak = 0
            stars = max(item.stars - 1, 1)
            permanent = item.permanent

        return item.model_copy(
            update={
                "correct_streak": streak,
                "stars": stars,
                "permanent": permanent,
                "last_used": today,
            }
        )


_default_policy = ProgressPolicy()


def apply_correct_use(item: VocabularyRecord, today: date | None = None) -> VocabularyRecord:
    """Quick access to the default SM-2 correct-use transition."""
    return _default_policy.apply_correct_use(item, today)


# =============================================================================
# Ledger
# =============================================================================

_Model = TypeVar("_Model", bound=BaseModel)


class ProgressLedger:
    """
    Applies the progress policy to one workspace's stores.

    Items are keyed by ``word`` / ``rule``: an existing record is updated
    in place, a new one is appended, and a key is never stored twice.
    """

    def __init__(self, workspace: Workspace, policy: ProgressPolicy | None = None):
        self.workspace = workspace
        self.policy = policy or ProgressPolicy()

    # -------------------------------------------------------------------------
    # Store I/O
    # -------------------------------------------------------------------------

    def _load(self, name: str, model: type[_Model]) -> _Model:
        path = self.workspace.file(name)
        try:
            return model.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise WorkspaceIOError("read", path, e) from e
        except ValueError as e:
            raise WorkspaceIOError("parse", path, e) from e

    def _save(self, name: str, store: BaseModel) -> None:
        """Write via a temp file so readers never see a partial store."""
        path = self.workspace.file(name)
        tmp_path = path.with_name(path.name + ".tmp")
        content = json.dumps(store.model_dump(mode="json"), indent=2, ensure_ascii=False)
        try:
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise WorkspaceIOError("write", path, e) from e

    def load_vocabulary(self) -> VocabularyStore:
        return self._load(VOCABULARY_FILE, VocabularyStore)

    def load_grammar(self) -> GrammarStore:
        return self._load(GRAMMAR_FILE, GrammarStore)

    def load_overrides(self) -> UserOverrides:
        return self._load(OVERRIDES_FILE, UserOverrides)

    # -------------------------------------------------------------------------
    # Vocabulary
    # -------------------------------------------------------------------------

    @staticmethod
    def _find_word(store: VocabularyStore, word: str) -> int | None:
        for index, record in enumerate(store.words):
            if record.word == word:
                return index
        return None

    def add_word(self, word: str, meaning: str = "", today: date | None = None) -> bool:
        """
        Start tracking a word.

        Returns:
            False if the word was already tracked (nothing changes)
        """
        store = self.load_vocabulary()
        if self._find_word(store, word) is not None:
            logger.debug(f"Word '{word}' already tracked")
            return False

        store.words.append(self.policy.new_word(word, meaning, today))
        self._save(VOCABULARY_FILE, store)
        logger.info(f"Added word: {word}")
        return True

    def record_word_use(self, word: str, today: date | None = None) -> VocabularyRecord:
        """Apply one correct use, creating the record on first sight."""
        store = self.load_vocabulary()
        index = self._find_word(store, word)

        if index is None:
            record = self.policy.new_word(word, today=today)
            store.words.append(record)
        else:
            record = self.policy.apply_correct_use(store.words[index], today)
            store.words[index] = record

        self._save(VOCABULARY_FILE, store)
        logger.debug(f"Word '{word}': repetitions={record.repetitions} interval={record.interval}")
        return record

    def recall_word(
        self,
        word: str,
        quality: RecallQuality | str,
        today: date | None = None,
    ) -> VocabularyRecord:
        """
        Grade an explicit review of a tracked word.

        Raises:
            InputValidationError: If quality is not forgot/hard/good/easy
            NotFoundError: If the word is not tracked
        """
        try:
            quality = RecallQuality(quality)
        except ValueError as e:
            raise InputValidationError(
                f"Invalid quality: {quality}. Must be: forgot, hard, good, easy"
            ) from e

        store = self.load_vocabulary()
        index = self._find_word(store, word)
        if index is None:
            raise NotFoundError(f"Word '{word}' not found")

        record = self.policy.apply_recall(store.words[index], quality, today)
        store.words[index] = record
        self._save(VOCABULARY_FILE, store)
        logger.info(f"Marked '{word}' as {quality.value}")
        return record

    def update_word_note(self, word: str, note: str) -> VocabularyRecord:
        store = self.load_vocabulary()
        index = self._find_word(store, word)
        if index is None:
            raise NotFoundError(f"Word '{word}' not found")

        record = store.words[index].model_copy(update={"notes": note})
        store.words[index] = record
        self._save(VOCABULARY_FILE, store)
        return record

    def due_words(self, today: date | None = None) -> list[VocabularyRecord]:
        """Words whose next review is today or earlier, most overdue first."""
        today = today or date.today()
        due = [record for record in self.load_vocabulary().words if record.is_due(today)]
        return sorted(due, key=lambda record: record.next_review)

    # -------------------------------------------------------------------------
    # Grammar
    # -------------------------------------------------------------------------

    @staticmethod
    def _find_rule(store: GrammarStore, rule: str) -> int | None:
        for index, record in enumerate(store.rules):
            if record.rule == rule:
                return index
        return None

    def add_grammar(
        self,
        rule: str,
        description: str,
        level: str,
        today: date | None = None,
    ) -> bool:
        """
        Start tracking a grammar rule at one star with no streak.

        Returns:
            False if the rule was already tracked (nothing changes)

        Raises:
            InputValidationError: If level is not a CEFR level
        """
        if level not in CEFR_LEVELS:
            raise InputValidationError(
                f"Invalid level: {level}. Must be: {', '.join(CEFR_LEVELS)}"
            )

        store = self.load_grammar()
        if self._find_rule(store, rule) is not None:
            logger.debug(f"Rule '{rule}' already tracked")
            return False

        store.rules.append(self.policy.new_rule(rule, description, level, today))
        self._save(GRAMMAR_FILE, store)
        logger.info(f"Added grammar rule: {rule}")
        return True

    def record_grammar_use(
        self,
        rule: str,
        correct: bool = True,
        today: date | None = None,
    ) -> GrammarRecord:
        """
        Apply one use of a rule.

        A correct use of an unknown rule starts it at one star with a
        streak of one. An incorrect use needs an existing rule.
        """
        store = self.load_grammar()
        index = self._find_rule(store, rule)

        if index is None:
            if not correct:
                raise NotFoundError(f"Rule '{rule}' not found")
            record = self.policy.new_rule(rule, today=today, correct_streak=1)
            store.rules.append(record)
        else:
            record = self.policy.apply_grammar_use(store.rules[index], correct, today)
            store.rules[index] = record

        self._save(GRAMMAR_FILE, store)
        logger.debug(f"Rule '{rule}': stars={record.stars} streak={record.correct_streak}")
        return record

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    def adjust_difficulty(self, direction: str, reason: str = "", today: date | None = None) -> UserOverrides:
        """
        Record a difficulty change in user-overrides.json.

        Raises:
            InputValidationError: If direction is not easier/harder/auto or a CEFR level
        """
        if direction not in DIFFICULTY_DIRECTIONS:
            raise InputValidationError(
                f"Invalid direction: {direction}. Must be: {', '.join(DIFFICULTY_DIRECTIONS)}"
            )

        overrides = self.load_overrides()
        overrides.difficulty = Difficulty(level=direction, notes=reason)
        overrides.adjustments.append(
            DifficultyAdjustment(date=today or date.today(), direction=direction, reason=reason)
        )
        self._save(OVERRIDES_FILE, overrides)
        logger.info(f"Adjusted difficulty to: {direction}")
        return overrides
