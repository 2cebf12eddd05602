"""
Transcript Reader: recover chat turns from the agent's conversation log.

The responder agent persists every conversation as a JSON Lines file in
its own per-project directory:

    ~/.claude/projects/
        -home-ana-tandem-data-korean/
            0b8f...-e29b.jsonl     # One record per line

The log format belongs to the agent, not to tandem. Records are
heterogeneous (user text, assistant content blocks, tool calls, tool
results, summaries ...) and a line may be half-written when we read it,
so extraction is narrow: only plain learner text and the first text
block of an assistant message become turns, and anything that fails to
parse is skipped.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from pathlib import Path
from stat import S_ISREG
from typing import Any, Literal

from loguru import logger

from .exceptions import WorkspaceIOError

LOG_SUFFIX = ".jsonl"
_LONG_PATH_PREFIX = "\\\\?\\"

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class ChatTurn:
    """One user or assistant message, in log order."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


# =============================================================================
# Log Location
# =============================================================================


def encode_project_dir_name(path: str) -> str:
    """
    Encode an absolute path the way the agent names its project folders.

    ``C:\\Users\\ana\\data\\korean`` becomes ``C--Users-ana-data-korean`` and
    ``/home/ana/data/korean`` becomes ``-home-ana-data-korean``.
    """
    if path.startswith(_LONG_PATH_PREFIX):
        path = path[len(_LONG_PATH_PREFIX):]
    return path.replace(":\\", "--").replace("\\", "-").replace("/", "-")


def project_log_dir(workspace_path: Path, projects_root: Path) -> Path:
    """Derive the agent's log directory for a workspace directory."""
    canonical = Path(workspace_path).resolve()
    return Path(projects_root) / encode_project_dir_name(str(canonical))


def find_latest_log(log_dir: Path) -> Path | None:
    """
    Pick the most recently modified conversation log in a directory.

    Files with equal modification times are ordered by name so the
    choice is repeatable.

    Raises:
        WorkspaceIOError: If the directory or a log file cannot be inspected
    """
    if not log_dir.is_dir():
        return None

    try:
        entries = sorted(log_dir.iterdir())
    except OSError as e:
        raise WorkspaceIOError("list", log_dir, e) from e

    candidates: list[tuple[float, Path]] = []
    for entry in entries:
        if entry.suffix != LOG_SUFFIX:
            continue
        try:
            stat = entry.stat()
        except FileNotFoundError:
            continue  # Removed between listing and stat
        except OSError as e:
            raise WorkspaceIOError("read", entry, e) from e
        if S_ISREG(stat.st_mode):
            candidates.append((stat.st_mtime, entry))

    if not candidates:
        return None

    # Stable sort keeps name order among equal mtimes
    candidates.sort(key=lambda item: item[0], reverse=True)
    return candidates[0][1]


# =============================================================================
# Record Extraction
# =============================================================================


def _message_content(record: dict[str, Any], role: Role) -> Any | None:
    """Return message content when both the record and message carry ``role``."""
    if record.get("type") != role:
        return None
    message = record.get("message")
    if not isinstance(message, dict) or message.get("role") != role:
        return None
    return message.get("content")


def _extract_user_text(record: dict[str, Any]) -> str | None:
    content = _message_content(record, "user")
    # List content is tool plumbing (tool_result blocks), never learner speech
    if isinstance(content, str):
        return content
    return None


def _extract_assistant_text(record: dict[str, Any]) -> str | None:
    content = _message_content(record, "assistant")
    if not isinstance(content, list):
        return None

    for block in content:
        if isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text")
            if isinstance(text, str):
                return text
    return None


def extract_turn(record: Any) -> ChatTurn | None:
    """
    Classify one decoded log record.

    Returns:
        A ChatTurn, or None when the record is not chat (tool results,
        tool calls, summaries, metadata ...)
    """
    if not isinstance(record, dict):
        return None

    user_text = _extract_user_text(record)
    if user_text:
        return ChatTurn(role="user", content=user_text)

    assistant_text = _extract_assistant_text(record)
    if assistant_text:
        return ChatTurn(role="assistant", content=assistant_text)

    return None


def parse_transcript(lines: Iterable[str]) -> list[ChatTurn]:
    """Turn log lines into chat turns, skipping anything malformed."""
    turns: list[ChatTurn] = []
    skipped = 0

    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            skipped += 1
            continue

        turn = extract_turn(record)
        if turn is not None:
            turns.append(turn)

    if skipped:
        logger.debug(f"Skipped {skipped} malformed transcript line(s)")
    return turns


# =============================================================================
# Entry Point
# =============================================================================


def read_transcript(log_file: Path) -> list[ChatTurn]:
    """Parse one conversation log file."""
    try:
        with log_file.open(encoding="utf-8", errors="replace") as f:
            return parse_transcript(f)
    except OSError as e:
        raise WorkspaceIOError("read", log_file, e) from e


def read_latest_transcript(workspace_path: Path, projects_root: Path) -> list[ChatTurn]:
    """
    Reconstruct the latest conversation held for a workspace.

    A workspace that has never been chatted in has no log directory yet;
    that is an empty history, not an error.
    """
    log_dir = project_log_dir(workspace_path, projects_root)
    latest = find_latest_log(log_dir)
    if latest is None:
        logger.debug(f"No conversation log under {log_dir}")
        return []

    logger.debug(f"Reading transcript {latest}")
    return read_transcript(latest)
