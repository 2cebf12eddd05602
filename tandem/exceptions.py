"""
Error types raised by tandem.

Everything on the responder path surfaces as a subclass of ``TandemError``
with a message fit to show the learner. Tracker-path errors use the same
types but are only ever logged by the orchestrator.
"""

from __future__ import annotations

from pathlib import Path


class TandemError(Exception):
    """Base class for all tandem failures."""


class InputValidationError(TandemError):
    """Raised when user-supplied input breaks a validation rule."""


class InvalidLanguageError(InputValidationError):
    """Raised for a language name that cannot map to a workspace."""


class InvalidMessageError(InputValidationError):
    """Raised for an empty or oversized learner message."""


class AlreadyExistsError(TandemError):
    """Raised when bootstrapping a language that already has a workspace."""

    def __init__(self, language: str):
        self.language = language
        super().__init__(f"Language '{language}' already exists")


class NotFoundError(TandemError):
    """Raised when a workspace or tracked item does not exist."""


class NotBootstrappedError(TandemError):
    """Raised when an operation needs a workspace that was never created."""

    def __init__(self, language: str):
        self.language = language
        super().__init__(f"Language '{language}' not set up. Please bootstrap it first.")


class ProcessSpawnError(TandemError):
    """Raised when the agent binary cannot be launched at all."""

    def __init__(self, binary: str, reason: str):
        self.binary = binary
        self.reason = reason
        super().__init__(f"Failed to run {binary}: {reason}")


class ProcessFailure(TandemError):
    """Raised when the agent ran but exited non-zero."""

    def __init__(self, returncode: int, stderr: str, language: str | None = None):
        self.returncode = returncode
        self.stderr = stderr
        self.language = language
        detail = stderr.strip() or "No error output"
        prefix = f"Agent error ({language})" if language else "Agent error"
        super().__init__(f"{prefix}: exited with code {returncode}: {detail}")


class TrackerTimeout(TandemError):
    """Raised when a tracker invocation exceeds its bounded wait."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Tracker timed out after {timeout_seconds:g}s")


class WorkspaceIOError(TandemError):
    """Raised when reading, writing or removing a workspace file fails.

    Also covers store files whose contents cannot be decoded.
    """

    def __init__(self, action: str, path: Path, error: Exception):
        self.path = path
        self.error = error
        super().__init__(f"Failed to {action} {path.name}: {error}")
