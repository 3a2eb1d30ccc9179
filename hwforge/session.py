"""
Project sessions — each project is a folder on disk holding the project
document and everything generated for it.

Projects are identified by a short timestamp-based ID and stored under
  outputs/projects/<project_id>/     (or $HWFORGE_OUTPUT_DIR/<project_id>/)

A project folder contains:
  project.json     — metadata (created, last_modified, description, name, mode, stages)
  spec.json        — the ProjectSpec document, updated by every state patch
  api_calls.jsonl  — model calls and tool exchanges of every run
  enclosure.scad   — latest enclosure, once generated
  firmware/        — latest firmware files, once generated

The orchestrator never touches these files itself: it pushes partial
documents through ``on_spec_update``, which is wired to
:meth:`ProjectSession.apply_patch`.
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any

from hwforge.project import ProjectSpec

log = logging.getLogger("hwforge.session")

ROOT = Path(__file__).resolve().parent.parent


def projects_dir() -> Path:
    override = os.environ.get("HWFORGE_OUTPUT_DIR")
    return Path(override) if override else ROOT / "outputs" / "projects"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ProjectSession:
    id: str
    path: Path
    created: str                         # ISO 8601
    last_modified: str                   # ISO 8601
    description: str = ""
    name: str = ""                       # set once the spec is finalized
    mode: str = "vibe_it"

    @property
    def spec_path(self) -> Path:
        return self.path / "spec.json"

    @property
    def api_log_path(self) -> Path:
        return self.path / "api_calls.jsonl"

    def save(self) -> None:
        """Persist metadata to project.json."""
        self.last_modified = _now()
        self.path.mkdir(parents=True, exist_ok=True)
        meta = {
            "id": self.id,
            "created": self.created,
            "last_modified": self.last_modified,
            "description": self.description,
            "name": self.name,
            "mode": self.mode,
        }
        (self.path / "project.json").write_text(json.dumps(meta, indent=2), encoding="utf-8")

    # ── Project document ───────────────────────────────────────────

    def load_spec(self) -> ProjectSpec:
        if not self.spec_path.exists():
            return ProjectSpec(description=self.description)
        data = json.loads(self.spec_path.read_text(encoding="utf-8"))
        return ProjectSpec.model_validate(data)

    def save_spec(self, spec: ProjectSpec) -> None:
        self._write_spec(spec.model_dump(mode="json"))

    def _write_spec(self, data: dict) -> None:
        self.path.mkdir(parents=True, exist_ok=True)
        self.spec_path.write_text(json.dumps(data, indent=2, ensure_ascii=False),
                                  encoding="utf-8")
        self.save()

    def merge_spec(self, partial: dict[str, Any]) -> ProjectSpec:
        """Overwrite the top-level fields in ``partial`` and save."""
        data = self.load_spec().model_dump(mode="json")
        data.update(partial)
        spec = ProjectSpec.model_validate(data)
        self._write_spec(spec.model_dump(mode="json"))

        if "final_spec" in partial and spec.final_spec is not None:
            self.name = spec.final_spec.name
            self.save()
        if "enclosure" in partial and spec.enclosure is not None:
            (self.path / "enclosure.scad").write_text(spec.enclosure.open_scad_code,
                                                      encoding="utf-8")
        if "firmware" in partial and spec.firmware is not None:
            self._write_firmware(spec)
        return spec

    async def apply_patch(self, partial: dict[str, Any]) -> None:
        """``on_spec_update`` callback for the orchestrator."""
        self.merge_spec(partial)
        log.debug("Project %s: saved %s", self.id, ", ".join(partial))

    def _write_firmware(self, spec: ProjectSpec) -> None:
        root = self.path / "firmware"
        for f in spec.firmware.files:
            rel = PurePosixPath(f.path)
            if rel.is_absolute() or ".." in rel.parts:
                log.warning("Skipping firmware file outside the project: %s", f.path)
                continue
            target = root.joinpath(*rel.parts)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(f.content, encoding="utf-8")

    def summary(self) -> dict:
        spec = self.load_spec()
        return {
            "id": self.id,
            "created": self.created,
            "last_modified": self.last_modified,
            "description": self.description,
            "name": self.name,
            "mode": self.mode,
            "stages": {s.value: st.status.value for s, st in spec.stages.items()},
        }


def _generate_project_id() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def create_project(description: str, mode: str = "vibe_it") -> ProjectSession:
    """Create a new project folder with a fresh spec document."""
    base = projects_dir()
    pid = _generate_project_id()
    path = base / pid

    # Avoid collision (two projects in the same second)
    while path.exists():
        time.sleep(0.1)
        pid = _generate_project_id()
        path = base / pid

    now = _now()
    session = ProjectSession(id=pid, path=path, created=now, last_modified=now,
                             description=description, mode=mode)
    session.save_spec(ProjectSpec(description=description))
    log.info("Created project %s", pid)
    return session


def load_project(project_id: str) -> ProjectSession | None:
    """Load a project by ID. Returns None if not found."""
    path = projects_dir() / project_id
    meta_path = path / "project.json"
    if not meta_path.exists():
        return None
    try:
        meta = json.loads(meta_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        log.warning("Unreadable project metadata %s: %s", meta_path, exc)
        return None
    return ProjectSession(
        id=meta["id"],
        path=path,
        created=meta["created"],
        last_modified=meta["last_modified"],
        description=meta.get("description", ""),
        name=meta.get("name", ""),
        mode=meta.get("mode", "vibe_it"),
    )


def list_projects() -> list[dict]:
    """All projects, newest first, as lightweight metadata dicts."""
    base = projects_dir()
    if not base.exists():
        return []
    projects = []
    for d in sorted(base.iterdir(), reverse=True):
        if not d.is_dir():
            continue
        session = load_project(d.name)
        if session is not None:
            projects.append(session.summary())
    return projects
