"""Control tools: acceptance, validation, fixes, stage completion, progress, input."""

from __future__ import annotations

import logging

from hwforge.agent.context import ToolContext
from hwforge.agent.models import OrchestratorMode, OrchestratorStatus
from hwforge.design import CHECK_TYPES, generate_validation_report, validate_cross_stage
from hwforge.project import Stage, next_stage
from hwforge.project.patches import stage_complete_patch

from .board_tools import select_board_blocks
from .enclosure_tools import generate_enclosure
from .firmware_tools import generate_firmware

log = logging.getLogger("hwforge.tools.control")

_ACCEPT_MESSAGES = {
    Stage.ENCLOSURE: ("Enclosure accepted - ready for rendering",
                      "Enclosure accepted. Ready for STL rendering."),
    Stage.FIRMWARE: ("Firmware accepted - ready for user review",
                     "Firmware accepted. Code ready for user review."),
}


def _stage(value: str | None) -> Stage | None:
    try:
        return Stage(value)
    except ValueError:
        return None


async def accept_and_render(ctx: ToolContext, args: dict) -> dict:
    raw = args.get("stage")
    stage = _stage(raw)
    if stage not in _ACCEPT_MESSAGES:
        return {"error": f"Unknown stage for accept_and_render: {raw}"}

    action, message = _ACCEPT_MESSAGES[stage]
    ctx.add_history("progress", action, stage=stage)
    return {
        "success": True,
        "stage": stage.value,
        "message": message,
        "next_step": f'mark_stage_complete("{stage.value}")',
    }


async def validate_cross_stage_tool(ctx: ToolContext, args: dict) -> dict:
    check_type = args.get("check_type", "all")
    if check_type not in CHECK_TYPES:
        return {"error": f"Unknown check type: {check_type}"}

    ctx.update_state(status=OrchestratorStatus.VALIDATING)
    result = validate_cross_stage(ctx.project, check_type)
    ctx.update_state(
        validation_result=result.to_dict(),
        status=OrchestratorStatus.RUNNING if result.valid else OrchestratorStatus.FIXING,
    )
    ctx.add_history(
        "validation",
        f"Validation ({check_type})",
        result="PASSED" if result.valid else f"FAILED: {len(result.issues)} issues",
        details={"issue_count": len(result.issues),
                 "issues": [i.message for i in result.issues]},
    )
    log.info("Validation %s: %s", check_type, "passed" if result.valid else "failed")

    return {
        "valid": result.valid,
        "issue_count": len(result.issues),
        "issues": [{"severity": i.severity, "stage": i.stage, "message": i.message}
                   for i in result.issues],
        "suggestions": [{"stage": s.stage, "action": s.action, "auto_fixable": s.auto_fixable}
                        for s in result.suggestions],
        "report": generate_validation_report(result),
    }


async def fix_stage_issue(ctx: ToolContext, args: dict) -> dict:
    raw = args.get("stage")
    issue = args.get("issue", "")
    fix = args.get("fix", "")
    stage = _stage(raw)

    ctx.add_history("fix", f"Fixing: {issue}", stage=stage, result=fix)
    feedback = f"Issue: {issue}\nRequired fix: {fix}"

    if stage == Stage.ENCLOSURE:
        style = ctx.project.enclosure.style if ctx.project.enclosure else "rounded_box"
        return await generate_enclosure(ctx, {"style": style, "feedback": feedback})
    if stage == Stage.FIRMWARE:
        return await generate_firmware(ctx, {
            "enable_wifi": True, "enable_ble": False,
            "enable_ota": True, "enable_deep_sleep": False,
            "feedback": feedback,
        })
    if stage == Stage.BOARD:
        return await select_board_blocks(ctx, {"blocks": [], "reasoning": fix})
    return {"success": True, "message": f"Issue noted: {fix}"}


async def mark_stage_complete(ctx: ToolContext, args: dict) -> dict:
    raw = args.get("stage")
    stage = _stage(raw)
    if stage is None:
        return {"error": f"Unknown stage: {raw}"}

    await ctx.apply(stage_complete_patch(stage))
    following = next_stage(stage)
    if following is not None:
        ctx.update_state(current_stage=following)
    log.info("Stage %s complete", stage.value)
    return {"success": True, "stage": stage.value, "status": "complete"}


async def report_progress(ctx: ToolContext, args: dict) -> dict:
    message = args.get("message", "")
    stage = _stage(args.get("stage")) or ctx.current_stage
    percentage = args.get("percentage")

    ctx.add_history("progress", message, stage=stage,
                    details={"percentage": percentage} if percentage is not None else None)
    ctx.update_state(current_stage=stage, current_action=message)
    return {"success": True}


async def request_user_input(ctx: ToolContext, args: dict) -> dict:
    question = args.get("question", "")
    options = args.get("options") or []

    ask = ctx.request_user_input
    if ask is None:
        if ctx.mode == OrchestratorMode.VIBE_IT and options:
            return {"answer": options[0], "auto_selected": True}
        return {"error": "User input not available in this mode"}

    answer = await ask(question, options)
    return {"answer": answer, "user_provided": True}
