"""Runtime orchestrator state — what the UI watches while a run is live."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable

from hwforge.project import Stage


class OrchestratorMode(str, Enum):
    VIBE_IT = "vibe_it"         # fully autonomous
    FIX_IT = "fix_it"           # asks the user on major decisions only
    DESIGN_IT = "design_it"     # asks the user at every decision


class OrchestratorStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    VALIDATING = "validating"
    FIXING = "fixing"
    COMPLETE = "complete"
    ERROR = "error"


HISTORY_TYPES = ("tool_call", "tool_result", "validation", "error", "fix", "progress", "thinking")


def _history_id() -> str:
    return f"{int(time.time() * 1000)}_{secrets.token_hex(3)[:5]}"


@dataclass
class HistoryItem:
    """One entry of the run's audit trail. Append-only."""
    type: str                           # one of HISTORY_TYPES
    action: str
    stage: Stage | None = None
    result: Any = None
    details: Any = None
    id: str = field(default_factory=_history_id)
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "type": self.type,
            "stage": self.stage.value if self.stage else None,
            "action": self.action,
        }
        if self.result is not None:
            d["result"] = self.result
        if self.details is not None:
            d["details"] = self.details
        return d


@dataclass
class OrchestratorState:
    project_id: str
    mode: OrchestratorMode = OrchestratorMode.VIBE_IT
    status: OrchestratorStatus = OrchestratorStatus.IDLE
    current_stage: Stage = Stage.SPEC
    history: list[HistoryItem] = field(default_factory=list)
    current_action: str | None = None
    error: str | None = None
    validation_result: dict | None = None
    iteration_count: int = 0
    started_at: int | None = None
    completed_at: int | None = None

    def snapshot(self) -> OrchestratorState:
        """Shallow copy; the history list is copied, its items are shared."""
        return replace(self, history=list(self.history))

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "mode": self.mode.value,
            "status": self.status.value,
            "current_stage": self.current_stage.value,
            "history": [h.to_dict() for h in self.history],
            "current_action": self.current_action,
            "error": self.error,
            "validation_result": self.validation_result,
            "iteration_count": self.iteration_count,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }


UserInputFn = Callable[[str, list[str]], Awaitable[str]]


async def _noop_spec_update(partial: dict) -> None:
    return None


@dataclass
class OrchestratorCallbacks:
    """Hooks the orchestrator calls; only ``on_spec_update`` is awaited."""
    on_state_change: Callable[[OrchestratorState], None] = lambda state: None
    on_spec_update: Callable[[dict], Awaitable[None]] = _noop_spec_update
    on_complete: Callable[[OrchestratorState], None] = lambda state: None
    on_error: Callable[[Exception], None] = lambda exc: None
    on_user_input_required: UserInputFn | None = None
