"""
Agent Invocation Layer: run the external agent binary.

Two invocation shapes share one executor:

- Responder: continues the most recent conversation in the workspace
  root and answers the learner. The caller waits for it.
- Tracker: runs in the workspace's ``.tracker`` subdirectory so the agent
  treats it as an unrelated conversation, rewrites vocabulary.json and
  grammar.json, and is bounded by a timeout. Its output is never used.

Starting a process and waiting for it are separate steps, so a caller
can launch the tracker first and hand only the blocking wait to a
worker thread.
"""

from __future__ import annotations

import os
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from .exceptions import InvalidMessageError, ProcessSpawnError, TrackerTimeout
from .progress import GrammarConfig, SM2Config
from .templates import render

BYPASS_PERMISSIONS_FLAG = "--dangerously-skip-permissions"
CONTINUE_FLAG = "--continue"
PROMPT_FLAG = "-p"

# Spawned consoles are only visible on Windows; resolved once at import
if sys.platform == "win32":
    _CREATION_FLAGS = subprocess.CREATE_NO_WINDOW
else:
    _CREATION_FLAGS = 0


# =============================================================================
# Prompts
# =============================================================================

_SM2 = SM2Config()
_GRAMMAR = GrammarConfig()

TRACKER_PROMPT = f"""[TRACKER TASK - UPDATE FILES ONLY, NO RESPONSE]

Process this learner message and update vocabulary.json and grammar.json.

Learner said: {{{{MESSAGE}}}}

Instructions:
1. Read config.json to determine the target language
2. Read vocabulary.json and grammar.json
3. For each TARGET LANGUAGE word the learner used (IGNORE all English words):
   - If NEW: add entry with ease={_SM2.initial_easiness}, interval={_SM2.first_interval}, repetitions=1, next_review=today + {_SM2.first_interval} day
   - If EXISTS: update SM-2 data (see below)
4. For grammar patterns used:
   - If NEW: add entry with stars=1, correct_streak=1
   - If EXISTS: increment correct_streak, then upgrade stars (see below)
5. Write updated files
6. Output NOTHING - your only job is updating files

CRITICAL: Only extract words in the target language script (Hangul for Korean, Kana/Kanji for Japanese, Hanzi for Chinese, etc). NEVER add English words.

SM-2 Algorithm (when learner uses a word correctly):
- repetitions += 1
- if repetitions == 1: interval = {_SM2.first_interval}
- if repetitions == 2: interval = {_SM2.second_interval}
- if repetitions >= 3: interval = round(interval × ease)
- ease stays unchanged
- next_review = today + interval days (YYYY-MM-DD)

Grammar stars (when learner uses a rule correctly):
- stars = max(stars, 1 + correct_streak // {_GRAMMAR.streak_per_star}), never above {_GRAMMAR.max_stars}
- set permanent=true once stars == {_GRAMMAR.max_stars} and correct_streak >= {_GRAMMAR.permanent_streak}
- never lower stars

IMPORTANT: Check for duplicates by word/rule field. Update existing entries, don't create duplicates."""

MODE_PREFIX_END = "<<<MSG>>>"

LEARNING_MODES: dict[str, str | None] = {
    "chat": None,  # Default conversation, no prefix
    "think-out-loud": (
        "[Think-Out-Loud Mode] "
        "Echo corrections only. NO unsolicited explanations, NO vocab notes, NO questions, "
        "NO emojis, NO praise. Just restate their sentence correctly. If correct, give a "
        "one-word approval in the target language and nothing else. EXCEPTION: If they ask "
        "a direct question, answer it briefly."
    ),
    "story": (
        "[Story Mode] "
        "Write a short story on the topic they request. Use vocabulary from vocabulary.json. "
        "Ask 2-3 comprehension questions about the story. Stay on-topic - this is reading "
        "practice, not conversation. When done, ask if they want a new story. If they go "
        "off-topic, redirect to the story."
    ),
}
UNAVAILABLE_MODES = frozenset({"review"})


def apply_mode_prefix(mode: str, message: str) -> str:
    """
    Prefix the responder prompt with the learning-mode instructions.

    Raises:
        InvalidMessageError: For an unknown or not yet available mode
    """
    if mode in UNAVAILABLE_MODES:
        raise InvalidMessageError(f"Mode '{mode}' is not available yet")
    if mode not in LEARNING_MODES:
        raise InvalidMessageError(
            f"Unknown mode '{mode}'. Choose from: {', '.join(LEARNING_MODES)}"
        )

    instructions = LEARNING_MODES[mode]
    if instructions is None:
        return message
    return f"{instructions} {MODE_PREFIX_END}{message}"


# =============================================================================
# Request / Result
# =============================================================================


@dataclass(frozen=True)
class AgentInvocationRequest:
    """One call to the agent binary."""

    binary: str
    args: tuple[str, ...]
    cwd: Path
    skip_permissions: bool = True
    env: dict[str, str] = field(default_factory=dict)  # Overrides on top of os.environ
    timeout: float | None = None

    def argv(self) -> list[str]:
        """Full command line, binary first."""
        argv = [self.binary]
        if self.skip_permissions:
            argv.append(BYPASS_PERMISSIONS_FLAG)
        argv.extend(self.args)
        return argv


@dataclass(frozen=True)
class AgentResult:
    """Exit status and captured streams of a finished invocation."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


def responder_request(binary: str, workspace_dir: Path, prompt: str) -> AgentInvocationRequest:
    """Continue the workspace's latest conversation with ``prompt``."""
    return AgentInvocationRequest(
        binary=binary,
        args=(CONTINUE_FLAG, PROMPT_FLAG, prompt),
        cwd=workspace_dir,
    )


def tracker_request(
    binary: str,
    tracker_dir: Path,
    message: str,
    timeout: float,
) -> AgentInvocationRequest:
    """Fresh conversation in the tracker directory, bounded by ``timeout``."""
    return AgentInvocationRequest(
        binary=binary,
        args=(PROMPT_FLAG, render(TRACKER_PROMPT, MESSAGE=message)),
        cwd=tracker_dir,
        timeout=timeout,
    )


# =============================================================================
# Executor
# =============================================================================


class RunningAgent:
    """
    A started agent process.

    ``wait`` blocks until the child exits; callers that must not block
    run it on a worker thread.
    """

    def __init__(self, request: AgentInvocationRequest, process: subprocess.Popen):
        self.request = request
        self.process = process

    def wait(self) -> AgentResult:
        """
        Collect the agent's output once it exits.

        Raises:
            TrackerTimeout: If ``request.timeout`` expires (the child is killed)
        """
        try:
            stdout, stderr = self.process.communicate(timeout=self.request.timeout)
        except subprocess.TimeoutExpired as e:
            self.process.kill()
            self.process.communicate()
            raise TrackerTimeout(self.request.timeout or 0.0) from e

        logger.debug(
            f"{self.request.binary} exited with code {self.process.returncode}, "
            f"stdout length {len(stdout)}"
        )
        return AgentResult(
            returncode=self.process.returncode,
            stdout=stdout,
            stderr=stderr,
        )


def start_agent(request: AgentInvocationRequest) -> RunningAgent:
    """
    Launch the agent without waiting for it.

    stdin is closed so the agent never waits on it.

    Raises:
        ProcessSpawnError: If the binary cannot be started
    """
    env = {**os.environ, **request.env} if request.env else None

    logger.debug(f"Starting {request.binary} in {request.cwd} (timeout={request.timeout})")

    try:
        process = subprocess.Popen(
            request.argv(),
            cwd=request.cwd,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            creationflags=_CREATION_FLAGS,
        )
    except OSError as e:
        raise ProcessSpawnError(request.binary, str(e)) from e

    return RunningAgent(request, process)


def run_agent(request: AgentInvocationRequest) -> AgentResult:
    """
    Run the agent and wait for it to exit.

    A non-zero exit is returned, not raised; the caller decides what
    failure means.

    Raises:
        ProcessSpawnError: If the binary cannot be started
        TrackerTimeout: If ``request.timeout`` expires (the child is killed)
    """
    return start_agent(request).wait()
