"""
FastAPI web server — project CRUD plus a streaming endpoint that runs the
orchestrator and relays its progress as server-sent events.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from hwforge.agent import ApiLog, OrchestratorCallbacks, OrchestratorMode, OrchestratorState
from hwforge.agent.core import HardwareOrchestrator
from hwforge.catalog import catalog_to_dict, load_catalog
from hwforge.env import load_env
from hwforge.llm import AnthropicClient, HttpImageClient, ImageClient, ModelClient
from hwforge.session import ProjectSession, create_project, list_projects, load_project

log = logging.getLogger("hwforge.web")

load_env()

# ── App ────────────────────────────────────────────────────────────

app = FastAPI(title="hwforge")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

KEEPALIVE_SECONDS = 15


def make_client() -> ModelClient:
    return AnthropicClient()


def make_image_client() -> ImageClient | None:
    return HttpImageClient() if os.environ.get("HWFORGE_IMAGE_URL") else None


# ── Live runs (one per project) ────────────────────────────────────

@dataclass
class _Run:
    orchestrator: HardwareOrchestrator
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    task: asyncio.Task | None = None
    pending_answer: asyncio.Future | None = None


_runs: dict[str, _Run] = {}


def _state_event(state: OrchestratorState) -> dict:
    data = state.to_dict()
    history = data.pop("history")
    return {
        "type": "state",
        "state": data,
        "history_count": len(history),
        "latest": history[-1] if history else None,
    }


def _build_run(session: ProjectSession, mode: OrchestratorMode) -> _Run:
    queue: asyncio.Queue = asyncio.Queue()
    holder: dict[str, _Run] = {}

    async def on_spec_update(partial: dict) -> None:
        await session.apply_patch(partial)
        queue.put_nowait({"type": "spec", "fields": sorted(partial)})

    async def ask_user(question: str, options: list[str]) -> str:
        future = asyncio.get_running_loop().create_future()
        holder["run"].pending_answer = future
        queue.put_nowait({"type": "question", "question": question, "options": options})
        try:
            return await future
        finally:
            holder["run"].pending_answer = None

    callbacks = OrchestratorCallbacks(
        on_state_change=lambda state: queue.put_nowait(_state_event(state)),
        on_spec_update=on_spec_update,
        on_complete=lambda state: queue.put_nowait({"type": "complete"}),
        on_error=lambda exc: queue.put_nowait({"type": "error", "message": str(exc)}),
        on_user_input_required=None if mode == OrchestratorMode.VIBE_IT else ask_user,
    )
    orchestrator = HardwareOrchestrator(
        session.id, mode, callbacks,
        client=make_client(),
        image_client=make_image_client(),
        api_log=ApiLog(session.api_log_path),
    )
    run = _Run(orchestrator=orchestrator, queue=queue)
    holder["run"] = run
    return run


# ── Models ─────────────────────────────────────────────────────────

class CreateProjectRequest(BaseModel):
    description: str
    mode: OrchestratorMode = OrchestratorMode.VIBE_IT


class RunRequest(BaseModel):
    mode: OrchestratorMode | None = None


class AnswerRequest(BaseModel):
    answer: str


# ── Routes ─────────────────────────────────────────────────────────

def _require_project(project_id: str) -> ProjectSession:
    session = load_project(project_id)
    if session is None:
        raise HTTPException(404, f"Unknown project: {project_id}")
    return session


@app.get("/api/catalog")
def get_catalog():
    return catalog_to_dict(load_catalog())


@app.get("/api/projects")
def get_projects():
    return {"projects": list_projects()}


@app.post("/api/projects")
def post_project(req: CreateProjectRequest):
    if not req.description.strip():
        raise HTTPException(400, "Empty description.")
    session = create_project(req.description.strip(), mode=req.mode.value)
    return session.summary()


@app.get("/api/projects/{project_id}")
def get_project(project_id: str):
    session = _require_project(project_id)
    run = _runs.get(project_id)
    return {
        "project": session.summary(),
        "spec": session.load_spec().model_dump(mode="json"),
        "state": run.orchestrator.get_state().to_dict() if run else None,
    }


@app.post("/api/projects/{project_id}/run")
async def run_project(project_id: str, req: RunRequest | None = None):
    """
    Start (or resume) the orchestrator for a project and stream its
    progress. The run continues in the background if the client drops.
    """
    session = _require_project(project_id)
    existing = _runs.get(project_id)
    if existing is not None and existing.task is not None and not existing.task.done():
        raise HTTPException(409, "Project is already running.")

    mode = (req.mode if req and req.mode else None) or OrchestratorMode(session.mode)
    catalog = load_catalog()
    for err in catalog.errors:
        log.warning("Catalog: %s", err)

    run = _build_run(session, mode)
    _runs[project_id] = run
    run.task = asyncio.create_task(run.orchestrator.run(
        session.description, existing_spec=session.load_spec(), available_blocks=catalog.blocks))
    run.task.add_done_callback(lambda _: run.queue.put_nowait(None))

    async def event_generator():
        while True:
            try:
                item = await asyncio.wait_for(run.queue.get(), timeout=KEEPALIVE_SECONDS)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            if item is None:
                break
            yield f"data: {json.dumps(item, default=str)}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@app.post("/api/projects/{project_id}/stop")
async def stop_project(project_id: str):
    run = _runs.get(project_id)
    if run is None or not run.orchestrator.is_running:
        raise HTTPException(404, "Project is not running.")
    await run.orchestrator.stop()
    return {"status": "paused"}


@app.post("/api/projects/{project_id}/answer")
async def answer_question(project_id: str, req: AnswerRequest):
    run = _runs.get(project_id)
    if run is None or run.pending_answer is None or run.pending_answer.done():
        raise HTTPException(409, "No question is waiting for an answer.")
    run.pending_answer.set_result(req.answer)
    return {"status": "ok"}


def main(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    uvicorn.run("hwforge.web.server:app", host=host, port=port, reload=False)
