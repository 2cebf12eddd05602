"""
Session Orchestrator: one learner message, two agents.

Flow for ``send_message``:

1. Resolve the workspace (must be bootstrapped) and validate the message
2. Start the tracker process, then detach its bounded wait
3. Start the responder, wait for it on a worker thread and return its
   trimmed output

Tracker waits run on their own thread pool, so any number of slow
trackers never hold the threads responders use. Tracker failures
(timeout, spawn error, non-zero exit) are logged and dropped; they cannot
change or delay the responder's result. No lock is held between the two
agents even though both can touch the same JSON stores - interaction is
human-paced and the last writer wins.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from loguru import logger

from .agent import (
    AgentInvocationRequest,
    RunningAgent,
    apply_mode_prefix,
    responder_request,
    start_agent,
    tracker_request,
)
from .config import Settings
from .exceptions import (
    InvalidMessageError,
    ProcessFailure,
    TandemError,
    TrackerTimeout,
)
from .transcript import ChatTurn, read_latest_transcript
from .workspace import Workspace, WorkspaceManager

AgentLauncher = Callable[[AgentInvocationRequest], RunningAgent]


class SessionOrchestrator:
    """Entry point for chatting with the tutor in one language."""

    def __init__(
        self,
        settings: Settings,
        launcher: AgentLauncher = start_agent,
        workspaces: WorkspaceManager | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            settings: Data root, agent binary and limits
            launcher: Starts an agent process and returns a handle to wait on
            workspaces: Workspace manager (built from settings if None)
        """
        self.settings = settings
        self.launcher = launcher
        self.workspaces = workspaces or WorkspaceManager(
            settings.data_dir, settings.tracker_dir_name
        )
        self._tracker_pool = ThreadPoolExecutor(thread_name_prefix="tandem-tracker")
        self._tracker_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_trackers(self) -> int:
        return len(self._tracker_tasks)

    # =========================================================================
    # Chat
    # =========================================================================

    def validate_message(self, message: str) -> None:
        """
        Raises:
            InvalidMessageError: If the message is blank or too long
        """
        if not message.strip():
            raise InvalidMessageError("Message cannot be empty")
        limit = self.settings.max_message_length
        if len(message) > limit:
            raise InvalidMessageError(
                f"Message too long ({len(message)} chars). Maximum is {limit} chars."
            )

    async def send_message(self, language: str, message: str, mode: str = "chat") -> str:
        """
        Send a learner message and return the tutor's reply.

        Raises:
            InvalidLanguageError: If the language name is invalid
            NotBootstrappedError: If the language has no workspace
            InvalidMessageError: If the message or mode is rejected
            ProcessSpawnError: If the responder could not be started
            ProcessFailure: If the responder exited non-zero
        """
        workspace = self.workspaces.require(language)
        self.validate_message(message)
        prompt = apply_mode_prefix(mode, message)

        logger.info(f"Message for {language} (mode={mode}, {len(message)} chars)")

        # Tracker gets the raw message, the responder the mode-prefixed one
        self._spawn_tracker(workspace, message)
        return await self._run_responder(workspace, prompt)

    async def _run_responder(self, workspace: Workspace, prompt: str) -> str:
        request = responder_request(self.settings.agent_binary, workspace.path, prompt)
        running = self.launcher(request)
        result = await asyncio.to_thread(running.wait)

        if not result.success:
            logger.error(f"Responder exited with code {result.returncode}")
            raise ProcessFailure(result.returncode, result.stderr, workspace.language)

        response = result.stdout.strip()
        logger.debug(f"Responder replied, length {len(response)}")
        return response

    # =========================================================================
    # Tracker
    # =========================================================================

    def _spawn_tracker(self, workspace: Workspace, message: str) -> None:
        """Start the tracker process now; only its wait is detached."""
        language = workspace.language
        try:
            workspace.tracker_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"[Tracker] Cannot create {workspace.tracker_dir}: {e}")
            return

        request = tracker_request(
            self.settings.agent_binary,
            workspace.tracker_dir,
            message,
            self.settings.tracker_timeout_seconds,
        )
        try:
            running = self.launcher(request)
        except TandemError as e:
            logger.error(f"[Tracker] {language}: {e}")
            return
        except Exception:
            logger.exception(f"[Tracker] {language}: unexpected failure")
            return

        task = asyncio.create_task(self._wait_tracker(running, language))
        self._tracker_tasks.add(task)
        task.add_done_callback(self._tracker_tasks.discard)

    async def _wait_tracker(self, running: RunningAgent, language: str) -> None:
        """Wait for one tracker process; every outcome ends here, logged."""
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(self._tracker_pool, running.wait)
        except TrackerTimeout as e:
            logger.warning(f"[Tracker] {language}: {e}")
            return
        except TandemError as e:
            logger.error(f"[Tracker] {language}: {e}")
            return
        except Exception:
            logger.exception(f"[Tracker] {language}: unexpected failure")
            return

        if result.success:
            logger.debug(f"[Tracker] {language}: progress updated")
        else:
            detail = result.stderr.strip() or "No error output"
            logger.warning(f"[Tracker] {language}: exited with code {result.returncode}: {detail}")

    async def wait_for_trackers(self) -> None:
        """
        Wait for outstanding tracker tasks.

        Only for shutdown paths (CLI exit, tests); ``send_message`` never
        calls this.
        """
        if self._tracker_tasks:
            await asyncio.gather(*list(self._tracker_tasks))

    # =========================================================================
    # History
    # =========================================================================

    def get_chat_history(self, language: str) -> list[ChatTurn]:
        """
        Reconstruct the latest responder conversation for a language.

        Raises:
            NotBootstrappedError: If the language has no workspace
        """
        workspace = self.workspaces.require(language)
        return read_latest_transcript(workspace.path, self.settings.agent_projects_dir)
