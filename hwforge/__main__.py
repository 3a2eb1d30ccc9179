"""
hwforge — entry point.

Usage:
    python -m hwforge run "a desk thermometer with an OLED"   # new project
    python -m hwforge resume 20260101_120000                  # continue a paused one
    python -m hwforge list
    python -m hwforge serve --port 3000
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from hwforge.agent import ApiLog, OrchestratorCallbacks, OrchestratorMode, OrchestratorState
from hwforge.catalog import load_catalog
from hwforge.env import load_env
from hwforge.session import ProjectSession, create_project, list_projects, load_project

log = logging.getLogger("hwforge")

_MODES = [m.value for m in OrchestratorMode]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="hwforge", description="Description → spec, board, enclosure, firmware")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("run", help="Create a project from a description and run it")
    r.add_argument("description", help="What the device should do")
    r.add_argument("--mode", choices=_MODES, default="vibe_it", help="How much to ask the user")

    rs = sub.add_parser("resume", help="Resume a paused or interrupted project")
    rs.add_argument("project_id", help="Project ID (see `list`)")
    rs.add_argument("--mode", choices=_MODES, default=None, help="Override the project's mode")

    sub.add_parser("list", help="List projects, newest first")

    sv = sub.add_parser("serve", help="Start the web server")
    sv.add_argument("--host", default="127.0.0.1", help="Host to bind")
    sv.add_argument("--port", type=int, default=8000, help="Port to bind")

    return p


async def _ask(question: str, options: list[str]) -> str:
    prompt = question + "".join(f"\n  [{i}] {o}" for i, o in enumerate(options)) + "\n> "
    answer = (await asyncio.to_thread(input, prompt)).strip()
    if answer.isdigit() and int(answer) < len(options):
        return options[int(answer)]
    return answer


async def _orchestrate(session: ProjectSession, mode: OrchestratorMode) -> OrchestratorState:
    # Deferred: pulls in the anthropic SDK and every tool module
    from hwforge.agent.core import HardwareOrchestrator
    from hwforge.llm import AnthropicClient, HttpImageClient

    catalog = load_catalog()
    for err in catalog.errors:
        log.warning("Catalog: %s", err)

    last_action: list[str | None] = [None]

    def on_state_change(state: OrchestratorState) -> None:
        if state.current_action and state.current_action != last_action[0]:
            log.info("[%s] %s", state.current_stage.value, state.current_action)
        last_action[0] = state.current_action

    callbacks = OrchestratorCallbacks(
        on_state_change=on_state_change,
        on_spec_update=session.apply_patch,
        on_complete=lambda state: log.info("Done in %d iterations", state.iteration_count),
        on_error=lambda exc: log.error("Run failed: %s", exc),
        on_user_input_required=None if mode == OrchestratorMode.VIBE_IT else _ask,
    )
    orchestrator = HardwareOrchestrator(
        session.id, mode, callbacks,
        client=AnthropicClient(),
        image_client=HttpImageClient() if os.environ.get("HWFORGE_IMAGE_URL") else None,
        api_log=ApiLog(session.api_log_path),
    )
    try:
        await orchestrator.run(session.description, existing_spec=session.load_spec(),
                               available_blocks=catalog.blocks)
    except asyncio.CancelledError:
        await orchestrator.stop()
        raise
    return orchestrator.get_state()


def _drive(session: ProjectSession, mode: OrchestratorMode) -> int:
    print(f"Project {session.id}: {session.path}")
    try:
        state = asyncio.run(_orchestrate(session, mode))
    except KeyboardInterrupt:
        print(f"\nPaused. Continue with: python -m hwforge resume {session.id}")
        return 130
    print(f"Status: {state.status.value} (stage {state.current_stage.value}, "
          f"{state.iteration_count} iterations)")
    return 0 if state.error is None else 1


def main() -> int:
    args = build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    load_env()

    if args.cmd == "run":
        session = create_project(args.description, mode=args.mode)
        return _drive(session, OrchestratorMode(args.mode))

    if args.cmd == "resume":
        session = load_project(args.project_id)
        if session is None:
            print(f"Unknown project: {args.project_id}", file=sys.stderr)
            return 1
        return _drive(session, OrchestratorMode(args.mode or session.mode))

    if args.cmd == "list":
        for p in list_projects():
            done = [s for s, status in p["stages"].items() if status == "complete"]
            print(f"{p['id']}  {p['name'] or p['description'][:40]:<40}  "
                  f"done: {', '.join(done) or '-'}")
        return 0

    if args.cmd == "serve":
        from hwforge.web.server import main as serve_main
        serve_main(host=args.host, port=args.port)
        return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())
