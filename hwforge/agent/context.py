"""Execution context handed to every tool handler.

One context is built per run and shared by all tool calls. It owns the
working copy of the project document and the runtime state; handlers read
``project`` freely but change it only through :meth:`ToolContext.apply`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from hwforge.catalog import Block
from hwforge.llm import ImageClient, ModelClient
from hwforge.project import ProjectSpec, SpecPatch, Stage, apply_patch

from .models import (
    HistoryItem, OrchestratorCallbacks, OrchestratorMode, OrchestratorState,
    UserInputFn,
)

log = logging.getLogger("hwforge.agent")


@dataclass
class ToolContext:
    project_id: str
    mode: OrchestratorMode
    project: ProjectSpec
    state: OrchestratorState
    client: ModelClient
    catalog: list[Block] = field(default_factory=list)
    image_client: ImageClient | None = None
    callbacks: OrchestratorCallbacks = field(default_factory=OrchestratorCallbacks)

    # Scratch state shared between the naming tools
    generated_names: list[dict] = field(default_factory=list)
    selected_name: str | None = None

    @property
    def current_stage(self) -> Stage:
        return self.state.current_stage

    @property
    def request_user_input(self) -> UserInputFn | None:
        return self.callbacks.on_user_input_required

    def set_generated_names(self, names: list[dict]) -> None:
        self.generated_names = list(names)

    def set_selected_name(self, name: str) -> None:
        self.selected_name = name

    # ── Project document ───────────────────────────────────────────

    async def apply(self, patch: SpecPatch) -> dict[str, Any]:
        """Apply ``patch`` to the working copy and push it to persistence."""
        partial = apply_patch(self.project, patch)
        await self.callbacks.on_spec_update(partial)
        return partial

    # ── Runtime state ──────────────────────────────────────────────

    def update_state(self, **changes: Any) -> None:
        for key, value in changes.items():
            if not hasattr(self.state, key):
                raise AttributeError(f"OrchestratorState has no field {key!r}")
            setattr(self.state, key, value)
        self._notify()

    def add_history(self, type: str, action: str, *, stage: Stage | None = None,
                    result: Any = None, details: Any = None) -> HistoryItem:
        item = HistoryItem(
            type=type,
            action=action,
            stage=stage if stage is not None else self.state.current_stage,
            result=result,
            details=details,
        )
        self.state.history.append(item)
        log.debug("history %s: %s", type, action)
        self._notify()
        return item

    def _notify(self) -> None:
        self.callbacks.on_state_change(self.state.snapshot())
