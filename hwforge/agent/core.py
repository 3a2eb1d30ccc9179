"""Orchestrator loop — drives a project from description to export."""

from __future__ import annotations

import json
import logging
import time

from hwforge.catalog import Block
from hwforge.errors import OrchestratorError
from hwforge.llm import ConversationMessage, ImageClient, ModelClient, ToolCall
from hwforge.project import ProjectSpec, Stage, StageStatus
from hwforge.project.patches import orchestrator_state_patch

from .apilog import ApiLog
from .compression import compress_tool_result
from .config import MAX_ITERATIONS, MAX_TOKENS, ORCHESTRATOR_TEMPERATURE, THINKING_BUDGET
from .context import ToolContext
from .messages import build_persisted_state, restore_history, resume_notice, trim_history
from .models import OrchestratorCallbacks, OrchestratorMode, OrchestratorState, OrchestratorStatus
from .prompts import SYSTEM_PROMPT, build_init_prompt
from .registry import get_tool
from .tools import TOOLS

log = logging.getLogger("hwforge.agent")

CONTINUE_NUDGE = "Continue with the next step in the design process."
RESULT_PREVIEW_CHARS = 200


def _now_ms() -> int:
    return int(time.time() * 1000)


class HardwareOrchestrator:
    """
    Autonomous tool-calling loop over one project.

    Each iteration sends the (trimmed) conversation to the model, runs the
    tool calls it returns in order, appends one ``tool`` message per call,
    and persists a resumable snapshot. The loop ends when the export stage
    is complete, on a fatal error, or after MAX_ITERATIONS iterations.
    """

    def __init__(
        self,
        project_id: str,
        mode: OrchestratorMode,
        callbacks: OrchestratorCallbacks,
        client: ModelClient,
        image_client: ImageClient | None = None,
        api_log: ApiLog | None = None,
    ):
        self.project_id = project_id
        self.mode = mode
        self.callbacks = callbacks
        self.client = client
        self.image_client = image_client
        self.api_log = api_log
        self.state = OrchestratorState(project_id=project_id, mode=mode)
        self.messages: list[ConversationMessage] = []
        self.ctx: ToolContext | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    # ── Public API ─────────────────────────────────────────────────

    async def run(
        self,
        description: str,
        existing_spec: ProjectSpec | None = None,
        available_blocks: list[Block] | None = None,
    ) -> None:
        if self._running:
            raise OrchestratorError("Orchestrator is already running")
        self._running = True

        project = (existing_spec.model_copy(deep=True) if existing_spec
                   else ProjectSpec(description=description))
        if not project.description:
            project.description = description

        self.ctx = ToolContext(
            project_id=self.project_id,
            mode=self.mode,
            project=project,
            state=self.state,
            client=self.client,
            catalog=list(available_blocks or []),
            image_client=self.image_client,
            callbacks=self.callbacks,
        )

        saved = project.orchestrator_state
        if saved is not None and saved.resumable:
            self.messages = restore_history(saved)
            self.state.iteration_count = saved.iteration
            self.state.current_stage = saved.current_stage
            self.messages.append(resume_notice(saved.iteration, saved.current_stage))
            log.info("Resuming %s at iteration %d (%s)",
                     self.project_id, saved.iteration, saved.current_stage.value)
            self.ctx.update_state(status=OrchestratorStatus.RUNNING, started_at=_now_ms(),
                                  current_action="Resuming orchestration...")
        else:
            self.messages = [
                ConversationMessage.system(SYSTEM_PROMPT),
                ConversationMessage.user(build_init_prompt(self.mode, description, project,
                                                          self.ctx.catalog)),
            ]
            log.info("Starting %s in %s mode", self.project_id, self.mode.value)
            self.ctx.update_state(status=OrchestratorStatus.RUNNING, started_at=_now_ms(),
                                  current_action="Initializing orchestrator...")

        try:
            while self._running and not self._is_complete():
                self.state.iteration_count += 1
                await self._run_iteration()
                await self._persist("running" if self._running else "paused")

                if self.state.iteration_count > MAX_ITERATIONS:
                    raise OrchestratorError("Orchestrator exceeded maximum iterations")

            if self._is_complete():
                self.ctx.update_state(status=OrchestratorStatus.COMPLETE,
                                      completed_at=_now_ms(), current_action=None)
                await self._persist("completed")
                log.info("Project %s complete after %d iterations",
                         self.project_id, self.state.iteration_count)
                self.callbacks.on_complete(self.state.snapshot())
            elif self.state.status != OrchestratorStatus.PAUSED:
                # A tool in the last iteration overwrote the paused status
                self.ctx.update_state(status=OrchestratorStatus.PAUSED, current_action=None)
        except Exception as exc:
            log.exception("Orchestrator failed for %s", self.project_id)
            self.ctx.update_state(status=OrchestratorStatus.ERROR, error=str(exc),
                                  current_action=None)
            await self._persist("error")
            self.callbacks.on_error(exc)
        finally:
            self._running = False

    async def stop(self) -> None:
        """Pause after the current iteration and persist for resume."""
        self._running = False
        self.state.status = OrchestratorStatus.PAUSED
        self.state.current_action = None
        if self.ctx is None:
            self.callbacks.on_state_change(self.state.snapshot())
            return
        self.ctx.update_state()
        await self._persist("paused")
        log.info("Paused %s at iteration %d", self.project_id, self.state.iteration_count)

    def get_state(self) -> OrchestratorState:
        return self.state.snapshot()

    # ── Iteration ──────────────────────────────────────────────────

    async def _run_iteration(self) -> None:
        ctx = self.ctx
        ctx.update_state(current_action="Thinking...")

        self.messages = trim_history(self.messages, self.state.current_stage,
                                     ctx.project, self.state.iteration_count)
        if self.api_log:
            self.api_log.set_turn(self.state.iteration_count)

        try:
            response = await self.client.chat_with_tools(
                self.messages,
                TOOLS,
                temperature=ORCHESTRATOR_TEMPERATURE,
                max_tokens=MAX_TOKENS,
                thinking=THINKING_BUDGET if self.mode == OrchestratorMode.VIBE_IT else None,
            )
        except Exception as exc:
            ctx.add_history("error", "LLM call failed", result=str(exc))
            raise

        if self.api_log:
            self.api_log.log("assistant", text=response.content,
                             tool_calls=[c.to_dict() for c in response.tool_calls],
                             finish_reason=response.finish_reason, usage=response.usage)

        if response.thinking:
            ctx.add_history("thinking", "Reasoning", result=response.thinking)

        if response.tool_calls:
            # The assistant turn must precede its tool results
            self.messages.append(ConversationMessage.assistant(
                response.content, response.tool_calls, response.thinking_blocks))

            results = []
            for call in response.tool_calls:
                results.append((call, await self._execute_tool_call(call)))

            for call, result in results:
                compressed = compress_tool_result(call.name, result)
                self.messages.append(ConversationMessage.tool(
                    call.id, json.dumps(compressed, default=str)))
        elif response.finish_reason == "stop":
            self.messages.append(ConversationMessage.assistant(
                response.content, thinking_blocks=response.thinking_blocks))
            if not self._is_complete():
                self.messages.append(ConversationMessage.user(CONTINUE_NUDGE))
        else:
            log.warning("Model stopped with %s and no tool calls", response.finish_reason)

    async def _execute_tool_call(self, call: ToolCall) -> dict:
        ctx = self.ctx
        ctx.add_history("tool_call", call.name, details=call.arguments)
        ctx.update_state(current_action=f"Executing: {call.name}")
        if self.api_log:
            self.api_log.log("tool_call", name=call.name, args=call.arguments)

        handler = get_tool(call.name)
        if handler is None:
            log.warning("Model called unknown tool %s", call.name)
            result = {"error": f"Unknown tool: {call.name}"}
        else:
            try:
                result = await handler(ctx, call.arguments)
            except Exception as exc:
                log.warning("Tool %s failed: %s", call.name, exc, exc_info=True)
                result = {"error": str(exc)}
                ctx.add_history("error", f"{call.name} failed", result=str(exc))

        compressed = json.dumps(compress_tool_result(call.name, result), default=str)
        ctx.add_history("tool_result", call.name, result=compressed[:RESULT_PREVIEW_CHARS])
        if self.api_log:
            self.api_log.log("tool_result", name=call.name, result=result)
        return result

    # ── Helpers ────────────────────────────────────────────────────

    def _is_complete(self) -> bool:
        return (self.ctx is not None
                and self.ctx.project.stage_status(Stage.EXPORT) == StageStatus.COMPLETE)

    async def _persist(self, status: str) -> None:
        snapshot = build_persisted_state(self.messages, self.state.iteration_count,
                                         status, self.state.current_stage)
        await self.ctx.apply(orchestrator_state_patch(snapshot))


def create_orchestrator(
    project_id: str,
    mode: OrchestratorMode,
    callbacks: OrchestratorCallbacks,
    client: ModelClient,
    image_client: ImageClient | None = None,
    api_log: ApiLog | None = None,
) -> HardwareOrchestrator:
    return HardwareOrchestrator(project_id, mode, callbacks, client,
                                image_client=image_client, api_log=api_log)
