"""
Workspace resolution and lifecycle.

A workspace is the per-language directory under the data root that holds
every piece of learner state for that language:

    <data_dir>/
        korean/
            CLAUDE.md              # Tutor instructions for the responder
            vocabulary.json        # Tracked words (SM-2 state)
            grammar.json           # Tracked grammar rules (stars)
            user-overrides.json    # Learning mode and preferences
            config.json            # Language metadata and start date
            .tracker/              # Tracker agent working directory

The directory name is the lower-cased language name, so the mapping from
language to directory is deterministic and case-insensitive.
"""

from __future__ import annotations

import json
import re
import shutil
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from loguru import logger

from .exceptions import (
    AlreadyExistsError,
    InvalidLanguageError,
    NotBootstrappedError,
    NotFoundError,
    WorkspaceIOError,
)
from .languages import get_language_profile
from .schemas import LanguageConfig
from .templates import (
    CONFIG_FILE,
    GRAMMAR_FILE,
    GRAMMAR_TEMPLATE,
    INSTRUCTIONS_FILE,
    OVERRIDES_FILE,
    TUTOR_TEMPLATE,
    USER_OVERRIDES_TEMPLATE,
    VOCABULARY_FILE,
    VOCABULARY_TEMPLATE,
    render,
)

_LANGUAGE_NAME = re.compile(r"[a-zA-Z0-9 -]+")

DEFAULT_TRACKER_DIR = ".tracker"


# =============================================================================
# Validation
# =============================================================================


def validate_language_name(language: str) -> None:
    """
    Check that a language name is safe to use as a directory name.

    Raises:
        InvalidLanguageError: With a message naming the violated rule
    """
    if not language or not language.strip():
        raise InvalidLanguageError("Language name cannot be empty")
    if ".." in language or "/" in language or "\\" in language:
        raise InvalidLanguageError("Language name contains invalid characters")
    if not _LANGUAGE_NAME.fullmatch(language):
        raise InvalidLanguageError(
            "Language name can only contain letters, numbers, spaces, and hyphens"
        )


def capitalize_first(name: str) -> str:
    """Uppercase the first character only, leaving the rest untouched."""
    return name[:1].upper() + name[1:]


# =============================================================================
# Workspace
# =============================================================================


@dataclass(frozen=True)
class Workspace:
    """One learner's language context on disk."""

    language: str
    path: Path
    tracker_dir_name: str = DEFAULT_TRACKER_DIR

    @property
    def tracker_dir(self) -> Path:
        """Isolated directory the tracker agent runs in."""
        return self.path / self.tracker_dir_name

    def exists(self) -> bool:
        return self.path.is_dir()

    def file(self, name: str) -> Path:
        return self.path / name


def resolve(language: str, data_dir: Path, tracker_dir_name: str = DEFAULT_TRACKER_DIR) -> Workspace:
    """
    Map a language name to its workspace.

    Pure apart from validation: nothing is read or written.

    Raises:
        InvalidLanguageError: If the name fails validation
    """
    validate_language_name(language)
    return Workspace(
        language=language,
        path=Path(data_dir) / language.lower(),
        tracker_dir_name=tracker_dir_name,
    )


# =============================================================================
# Workspace Manager
# =============================================================================


class WorkspaceManager:
    """
    Bootstraps, lists, reads and deletes workspaces under one data root.

    The data root is passed in explicitly so tests can point it at a
    temporary directory.
    """

    def __init__(self, data_dir: Path, tracker_dir_name: str = DEFAULT_TRACKER_DIR):
        self.data_dir = Path(data_dir)
        self.tracker_dir_name = tracker_dir_name

    def resolve(self, language: str) -> Workspace:
        return resolve(language, self.data_dir, self.tracker_dir_name)

    def require(self, language: str) -> Workspace:
        """
        Resolve a workspace that must already be bootstrapped.

        Raises:
            InvalidLanguageError: If the name fails validation
            NotBootstrappedError: If the workspace directory is missing
        """
        workspace = self.resolve(language)
        if not workspace.exists():
            raise NotBootstrappedError(language)
        return workspace

    def bootstrap(self, language: str, today: date | None = None) -> Workspace:
        """
        Create a workspace and write its five artifact files.

        Args:
            language: Language name as the learner typed it
            today: Start date recorded in config.json (defaults to today)

        Returns:
            The new workspace

        Raises:
            AlreadyExistsError: If the workspace directory is already present
            WorkspaceIOError: If a directory or file cannot be written
        """
        workspace = self.resolve(language)
        if workspace.exists():
            raise AlreadyExistsError(language)

        try:
            workspace.path.mkdir(parents=True)
        except OSError as e:
            raise WorkspaceIOError("create", workspace.path, e) from e

        profile = get_language_profile(language)

        instructions = render(
            TUTOR_TEMPLATE,
            LANGUAGE_NAME=language,
            LANGUAGE_NATIVE=profile.native_script,
            ROMANIZATION=profile.romanization,
            LANGUAGE_SPECIFIC_NOTES=profile.notes,
        )
        config = LanguageConfig(
            language=language,
            native_script=profile.native_script,
            romanization=profile.romanization,
            started=today or date.today(),
        )

        files = {
            INSTRUCTIONS_FILE: instructions,
            VOCABULARY_FILE: render(VOCABULARY_TEMPLATE, LANGUAGE_NAME=language),
            GRAMMAR_FILE: render(GRAMMAR_TEMPLATE, LANGUAGE_NAME=language),
            OVERRIDES_FILE: render(USER_OVERRIDES_TEMPLATE, LANGUAGE_NAME=language),
            CONFIG_FILE: json.dumps(config.model_dump(mode="json"), indent=2, ensure_ascii=False),
        }
        for name, content in files.items():
            self._write(workspace.file(name), content)

        logger.info(f"Bootstrapped {language} at {workspace.path}")
        return workspace

    def delete(self, language: str) -> None:
        """
        Remove a workspace and everything in it.

        Irreversible; callers confirm with the learner first.

        Raises:
            NotFoundError: If the workspace does not exist
            WorkspaceIOError: If removal fails part-way
        """
        workspace = self.resolve(language)
        if not workspace.exists():
            raise NotFoundError(f"Language '{language}' does not exist")

        try:
            shutil.rmtree(workspace.path)
        except OSError as e:
            raise WorkspaceIOError("delete", workspace.path, e) from e

        logger.info(f"Deleted workspace {workspace.path}")

    def list_languages(self) -> list[str]:
        """
        List bootstrapped languages as display names.

        Returns an empty list when the data root does not exist yet.
        """
        if not self.data_dir.is_dir():
            return []

        try:
            names = sorted(entry.name for entry in self.data_dir.iterdir() if entry.is_dir())
        except OSError as e:
            raise WorkspaceIOError("read", self.data_dir, e) from e

        return [capitalize_first(name) for name in names]

    def get_vocabulary(self, language: str) -> str:
        """Return vocabulary.json exactly as stored."""
        return self._read(self.require(language).file(VOCABULARY_FILE))

    def get_grammar(self, language: str) -> str:
        """Return grammar.json exactly as stored."""
        return self._read(self.require(language).file(GRAMMAR_FILE))

    def get_config(self, language: str) -> LanguageConfig:
        """Parse config.json for a workspace."""
        path = self.require(language).file(CONFIG_FILE)
        try:
            return LanguageConfig.model_validate_json(self._read(path))
        except ValueError as e:
            raise WorkspaceIOError("parse", path, e) from e

    # =========================================================================
    # File Helpers
    # =========================================================================

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise WorkspaceIOError("read", path, e) from e

    @staticmethod
    def _write(path: Path, content: str) -> None:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise WorkspaceIOError("write", path, e) from e
