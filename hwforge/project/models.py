"""Project document — the durable record each stage reads and writes.

Everything here round-trips through JSON (``model_dump(mode="json")`` /
``model_validate``), which is how sessions persist it to ``spec.json``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


# ── Stages ─────────────────────────────────────────────────────────

class Stage(str, Enum):
    SPEC = "spec"
    BOARD = "board"
    ENCLOSURE = "enclosure"
    FIRMWARE = "firmware"
    EXPORT = "export"


STAGE_ORDER: tuple[Stage, ...] = (
    Stage.SPEC, Stage.BOARD, Stage.ENCLOSURE, Stage.FIRMWARE, Stage.EXPORT,
)


class StageStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    ERROR = "error"


class StageState(BaseModel):
    status: StageStatus = StageStatus.PENDING
    completed_at: str | None = None
    error: str | None = None


def default_stages() -> dict[Stage, StageState]:
    """Fresh-project stages: spec in progress, everything else pending."""
    stages = {stage: StageState() for stage in STAGE_ORDER}
    stages[Stage.SPEC] = StageState(status=StageStatus.IN_PROGRESS)
    return stages


def next_stage(stage: Stage) -> Stage | None:
    idx = STAGE_ORDER.index(stage)
    return STAGE_ORDER[idx + 1] if idx + 1 < len(STAGE_ORDER) else None


# ── Spec stage ─────────────────────────────────────────────────────

class OpenQuestion(BaseModel):
    id: str
    question: str
    options: list[str] = Field(default_factory=list)


class Decision(BaseModel):
    question_id: str
    question: str
    answer: str
    timestamp: str


class Blueprint(BaseModel):
    url: str
    prompt: str
    style: str = ""


class Size(BaseModel):
    width: float
    height: float
    unit: str = "mm"


class IOEntry(BaseModel):
    type: str
    count: int = 1
    notes: str = ""


class PowerSpec(BaseModel):
    source: str = "USB-C"
    voltage: str = "5V"
    current: str = "500mA"
    battery_life: str | None = None


class CommunicationSpec(BaseModel):
    type: str = "WiFi"
    protocol: str = "HTTP/MQTT"


class EnclosureHint(BaseModel):
    style: str = "rounded_box"
    width: float = 60
    height: float = 45
    depth: float = 25


class FinalSpec(BaseModel):
    name: str
    summary: str = ""
    pcb_size: Size = Field(default_factory=lambda: Size(width=50.8, height=38.1))
    inputs: list[IOEntry] = Field(default_factory=list)
    outputs: list[IOEntry] = Field(default_factory=list)
    power: PowerSpec = Field(default_factory=PowerSpec)
    communication: CommunicationSpec = Field(default_factory=CommunicationSpec)
    enclosure: EnclosureHint = Field(default_factory=EnclosureHint)
    estimated_bom: list[dict[str, Any]] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    locked: bool = False
    locked_at: str | None = None


# ── Board stage ────────────────────────────────────────────────────

class PlacedBlock(BaseModel):
    block_slug: str
    grid_x: int
    grid_y: int
    rotation: int = 0
    reason: str = ""


class NetAssignment(BaseModel):
    net: str
    gpio: str | None = None
    block_slug: str = ""


class BoardLayout(BaseModel):
    placed_blocks: list[PlacedBlock] = Field(default_factory=list)
    board_size: Size | None = None
    net_list: list[NetAssignment] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# ── Enclosure / firmware stages ────────────────────────────────────

class EnclosureArtifact(BaseModel):
    open_scad_code: str
    style: str = "rounded_box"
    revision: int = 1


FirmwareLanguage = Literal["cpp", "c", "h", "json"]


class FirmwareFile(BaseModel):
    path: str
    content: str
    language: FirmwareLanguage = "cpp"


class FirmwareArtifact(BaseModel):
    files: list[FirmwareFile] = Field(default_factory=list)
    build_status: str = "pending"
    revision: int = 1


# ── Persisted orchestrator state ───────────────────────────────────

PersistedStatus = Literal["running", "paused", "completed", "error"]


class PersistedMessage(BaseModel):
    role: Literal["system", "user", "assistant", "tool"]
    content: str = ""


class PersistedOrchestratorState(BaseModel):
    conversation_history: list[PersistedMessage] = Field(default_factory=list)
    iteration: int = 0
    status: PersistedStatus = "running"
    current_stage: Stage = Stage.SPEC
    updated_at: int = 0                 # epoch milliseconds

    @property
    def resumable(self) -> bool:
        return self.status in ("paused", "running") and bool(self.conversation_history)


# ── The document ───────────────────────────────────────────────────

class ProjectSpec(BaseModel):
    description: str = ""
    feasibility: dict[str, Any] | None = None
    open_questions: list[OpenQuestion] = Field(default_factory=list)
    decisions: list[Decision] = Field(default_factory=list)
    blueprints: list[Blueprint] = Field(default_factory=list)
    selected_blueprint: int | None = None
    final_spec: FinalSpec | None = None
    board: BoardLayout | None = None
    enclosure: EnclosureArtifact | None = None
    firmware: FirmwareArtifact | None = None
    stages: dict[Stage, StageState] = Field(default_factory=default_stages)
    orchestrator_state: PersistedOrchestratorState | None = None

    @field_validator("stages", mode="before")
    @classmethod
    def _fill_stages(cls, value: Any) -> dict:
        """Keep exactly the five stage keys, defaulting any that are missing."""
        merged: dict[Any, Any] = dict(default_stages())
        for key, state in (value or {}).items():
            try:
                merged[Stage(key)] = state
            except ValueError:
                continue
        return merged

    def stage_status(self, stage: Stage) -> StageStatus:
        return self.stages[stage].status

    def completed_stages(self) -> list[Stage]:
        return [s for s in STAGE_ORDER if self.stages[s].status == StageStatus.COMPLETE]
