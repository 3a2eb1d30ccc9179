"""Tool registry: every ToolName mapped to its handler.

The mapping is checked at import time, so a tool declared to the model
without a handler (or the reverse) fails fast instead of mid-run.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from hwforge.tools import board_tools, control_tools, enclosure_tools, firmware_tools, spec_tools

from .context import ToolContext
from .tools import TOOLS, ToolName

ToolHandler = Callable[[ToolContext, dict], Awaitable[dict[str, Any]]]

REGISTRY: dict[ToolName, ToolHandler] = {
    # Spec
    ToolName.ANALYZE_FEASIBILITY: spec_tools.analyze_feasibility,
    ToolName.ANSWER_QUESTIONS_AUTO: spec_tools.answer_questions_auto,
    ToolName.GENERATE_BLUEPRINTS: spec_tools.generate_blueprints,
    ToolName.SELECT_BLUEPRINT: spec_tools.select_blueprint,
    ToolName.GENERATE_PROJECT_NAMES: spec_tools.generate_project_names,
    ToolName.SELECT_PROJECT_NAME: spec_tools.select_project_name,
    ToolName.FINALIZE_SPEC: spec_tools.finalize_spec,
    # Board
    ToolName.SELECT_BOARD_BLOCKS: board_tools.select_board_blocks,
    # Enclosure
    ToolName.GENERATE_ENCLOSURE: enclosure_tools.generate_enclosure,
    ToolName.REVIEW_ENCLOSURE: enclosure_tools.review_enclosure,
    # Firmware
    ToolName.GENERATE_FIRMWARE: firmware_tools.generate_firmware,
    ToolName.REVIEW_FIRMWARE: firmware_tools.review_firmware,
    # Control
    ToolName.ACCEPT_AND_RENDER: control_tools.accept_and_render,
    ToolName.VALIDATE_CROSS_STAGE: control_tools.validate_cross_stage_tool,
    ToolName.FIX_STAGE_ISSUE: control_tools.fix_stage_issue,
    ToolName.MARK_STAGE_COMPLETE: control_tools.mark_stage_complete,
    ToolName.REPORT_PROGRESS: control_tools.report_progress,
    ToolName.REQUEST_USER_INPUT: control_tools.request_user_input,
}


def _check_registry() -> None:
    missing = [t.value for t in ToolName if t not in REGISTRY]
    if missing:
        raise RuntimeError(f"Tools without a handler: {', '.join(missing)}")
    declared = {t["name"] for t in TOOLS}
    names = {t.value for t in ToolName}
    if declared != names:
        raise RuntimeError(
            f"Tool definitions out of sync: {', '.join(sorted(declared ^ names))}")


_check_registry()


def get_tool(name: str) -> ToolHandler | None:
    try:
        return REGISTRY[ToolName(name)]
    except ValueError:
        return None


def has_tool(name: str) -> bool:
    return get_tool(name) is not None


def tool_names() -> list[str]:
    return [t.value for t in ToolName]
