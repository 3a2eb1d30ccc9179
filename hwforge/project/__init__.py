"""Project document — models and the named patches that change them."""

from .models import (
    Stage, STAGE_ORDER, StageStatus, StageState, default_stages, next_stage,
    OpenQuestion, Decision, Blueprint, Size, IOEntry, PowerSpec,
    CommunicationSpec, EnclosureHint, FinalSpec,
    PlacedBlock, NetAssignment, BoardLayout,
    EnclosureArtifact, FirmwareFile, FirmwareArtifact,
    PersistedMessage, PersistedOrchestratorState, ProjectSpec,
)
from .patches import SpecPatch, apply_patch, transition_stage, now_iso

__all__ = [
    # Stages
    "Stage", "STAGE_ORDER", "StageStatus", "StageState", "default_stages", "next_stage",
    # Spec
    "OpenQuestion", "Decision", "Blueprint", "Size", "IOEntry", "PowerSpec",
    "CommunicationSpec", "EnclosureHint", "FinalSpec",
    # Board
    "PlacedBlock", "NetAssignment", "BoardLayout",
    # Artifacts
    "EnclosureArtifact", "FirmwareFile", "FirmwareArtifact",
    # Persistence
    "PersistedMessage", "PersistedOrchestratorState", "ProjectSpec",
    # Patches
    "SpecPatch", "apply_patch", "transition_stage", "now_iso",
]
