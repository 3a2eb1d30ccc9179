"""Orchestrator agent — the tool-calling loop and its supporting pieces.

The loop itself lives in ``hwforge.agent.core`` and is imported from there;
it pulls in every tool module, which in turn import the context from here.
"""

from .config import MAX_TOKENS, THINKING_BUDGET, ORCHESTRATOR_TEMPERATURE, MAX_ITERATIONS, MAX_MESSAGES, TRIM_TO
from .tools import TOOLS, ToolName
from .models import (
    OrchestratorMode, OrchestratorStatus, HistoryItem, OrchestratorState,
    OrchestratorCallbacks,
)
from .context import ToolContext
from .messages import trim_history, build_persisted_state, restore_history, resume_notice
from .apilog import ApiLog

__all__ = [
    # Config
    "MAX_TOKENS", "THINKING_BUDGET", "ORCHESTRATOR_TEMPERATURE", "MAX_ITERATIONS",
    "MAX_MESSAGES", "TRIM_TO",
    # Tools
    "TOOLS", "ToolName",
    # State
    "OrchestratorMode", "OrchestratorStatus", "HistoryItem", "OrchestratorState",
    "OrchestratorCallbacks", "ToolContext",
    # Messages
    "trim_history", "build_persisted_state", "restore_history", "resume_notice",
    "ApiLog",
]
