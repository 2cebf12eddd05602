"""
Tandem: an immersive language tutor built on two agent processes.

Components:
- WorkspaceManager: Per-language workspace bootstrap, listing and removal
- read_latest_transcript: Chat history from the agent's conversation log
- ProgressPolicy / ProgressLedger: SM-2 vocabulary and grammar star updates
- start_agent / run_agent: External agent executor (responder and tracker shapes)
- SessionOrchestrator: Send a message, spawn the tracker, await the reply
"""

from .agent import AgentInvocationRequest, AgentResult, RunningAgent, run_agent, start_agent
from .config import Settings, get_settings
from .orchestrator import SessionOrchestrator
from .progress import ProgressLedger, ProgressPolicy, RecallQuality, apply_correct_use
from .transcript import ChatTurn, read_latest_transcript
from .workspace import Workspace, WorkspaceManager, resolve

__version__ = "0.3.0"

__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    # Workspaces
    "Workspace",
    "WorkspaceManager",
    "resolve",
    # Transcript
    "ChatTurn",
    "read_latest_transcript",
    # Progress
    "ProgressPolicy",
    "ProgressLedger",
    "RecallQuality",
    "apply_correct_use",
    # Agents
    "AgentInvocationRequest",
    "AgentResult",
    "RunningAgent",
    "run_agent",
    "start_agent",
    "SessionOrchestrator",
]
