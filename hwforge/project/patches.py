"""Named state patches over the project document.

Tools never mutate the project directly. Each change is built by one of the
constructors below and applied with :func:`apply_patch`, which returns the
JSON-safe partial document that gets pushed to persistence.

Merge semantics:
  - ``replace`` fields overwrite the whole top-level field.
  - ``append`` fields extend the existing list (decisions accumulate).
  - ``stages`` are merged per key and only ever move forward; a backward
    move is dropped, never applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from hwforge.errors import StageTransitionError

from .models import (
    BoardLayout, Blueprint, Decision, EnclosureArtifact, FinalSpec,
    FirmwareArtifact, OpenQuestion, PersistedOrchestratorState, ProjectSpec,
    Stage, StageState, StageStatus, next_stage,
)

log = logging.getLogger("hwforge.project")

_STATUS_RANK = {
    StageStatus.PENDING: 0,
    StageStatus.IN_PROGRESS: 1,
    StageStatus.COMPLETE: 2,
    StageStatus.ERROR: 2,
}


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Stage transitions ──────────────────────────────────────────────

def transition_stage(current: StageState, status: StageStatus,
                     error: str | None = None) -> StageState:
    """Return the stage state after moving to ``status``.

    Re-applying the current status is a no-op. Raises StageTransitionError
    for any move that is not strictly forward.
    """
    if status == current.status:
        return current
    if _STATUS_RANK[status] <= _STATUS_RANK[current.status]:
        raise StageTransitionError(
            f"Cannot move stage from {current.status.value} to {status.value}")
    return StageState(
        status=status,
        completed_at=now_iso() if status == StageStatus.COMPLETE else None,
        error=error if status == StageStatus.ERROR else None,
    )


# ── Patch ──────────────────────────────────────────────────────────

@dataclass
class SpecPatch:
    name: str
    replace: dict[str, Any] = field(default_factory=dict)
    append: dict[str, list] = field(default_factory=dict)
    stages: dict[Stage, StageStatus] = field(default_factory=dict)


def apply_patch(project: ProjectSpec, patch: SpecPatch) -> dict[str, Any]:
    """Apply ``patch`` to ``project`` in place.

    Returns the partial document (only the touched top-level fields) in
    JSON form, ready for ``on_spec_update``.
    """
    touched: list[str] = []

    for key, value in patch.replace.items():
        setattr(project, key, value)
        touched.append(key)

    for key, items in patch.append.items():
        getattr(project, key).extend(items)
        touched.append(key)

    if patch.stages:
        for stage, status in patch.stages.items():
            try:
                project.stages[stage] = transition_stage(project.stages[stage], status)
            except StageTransitionError as exc:
                log.debug("Patch %s: skipped %s (%s)", patch.name, stage.value, exc)
        touched.append("stages")

    dumped = project.model_dump(mode="json", include=set(touched))
    log.debug("Applied patch %s -> %s", patch.name, ", ".join(touched))
    return dumped


# ── Constructors ───────────────────────────────────────────────────

def feasibility_patch(feasibility: dict, questions: list[OpenQuestion]) -> SpecPatch:
    return SpecPatch("feasibility", replace={
        "feasibility": feasibility,
        "open_questions": questions,
    })


def decisions_patch(decisions: list[Decision]) -> SpecPatch:
    return SpecPatch("decisions", append={"decisions": decisions})


def blueprints_patch(blueprints: list[Blueprint]) -> SpecPatch:
    return SpecPatch("blueprints", replace={"blueprints": blueprints})


def blueprint_selection_patch(index: int) -> SpecPatch:
    return SpecPatch("blueprint_selection", replace={"selected_blueprint": index})


def final_spec_patch(final_spec: FinalSpec) -> SpecPatch:
    return SpecPatch(
        "final_spec",
        replace={"final_spec": final_spec},
        stages={Stage.SPEC: StageStatus.COMPLETE},
    )


def board_patch(board: BoardLayout) -> SpecPatch:
    return SpecPatch("board", replace={"board": board})


def enclosure_patch(enclosure: EnclosureArtifact) -> SpecPatch:
    return SpecPatch("enclosure", replace={"enclosure": enclosure})


def firmware_patch(firmware: FirmwareArtifact) -> SpecPatch:
    return SpecPatch("firmware", replace={"firmware": firmware})


def stage_complete_patch(stage: Stage) -> SpecPatch:
    """Complete ``stage`` and open the one after it."""
    stages = {stage: StageStatus.COMPLETE}
    following = next_stage(stage)
    if following is not None:
        stages[following] = StageStatus.IN_PROGRESS
    return SpecPatch(f"complete_{stage.value}", stages=stages)


def orchestrator_state_patch(state: PersistedOrchestratorState) -> SpecPatch:
    return SpecPatch("orchestrator_state", replace={"orchestrator_state": state})
