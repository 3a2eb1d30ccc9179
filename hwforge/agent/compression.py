"""Shrink raw tool results to what the orchestrator needs to see.

Full artifacts live in the project document; the conversation only gets
summaries. Generated code and review results are the exception: the model
needs all of it to act on review feedback.
"""

from __future__ import annotations

import json
from typing import Any

from hwforge.design import extract_enclosure_dimensions, extract_enclosure_features

PREVIEW_THRESHOLD = 500    # JSON length above which unknown results are cut
PREVIEW_CHARS = 200

_PASS_THROUGH = {
    "review_enclosure", "review_firmware",
    "report_progress", "fix_stage_issue", "request_user_input",
    "answer_questions_auto", "generate_project_names", "select_project_name",
}


def compress_tool_result(name: str, result: Any) -> Any:
    if isinstance(result, dict) and "error" in result:
        return result
    if name in _PASS_THROUGH:
        return result

    r: dict = result if isinstance(result, dict) else {}

    if name == "analyze_feasibility":
        questions = r.get("open_questions")
        return {
            "success": r.get("success", True),
            "manufacturable": r.get("manufacturable"),
            "score": r.get("overall_score", r.get("score")),
            "open_question_count": (len(questions) if isinstance(questions, list)
                                    else r.get("open_question_count", 0)),
        }

    if name == "generate_blueprints":
        blueprints = r.get("blueprints")
        return {
            "success": True,
            "blueprint_count": (len(blueprints) if isinstance(blueprints, list)
                                else r.get("blueprint_count", 0)),
        }

    if name == "select_blueprint":
        return {
            "success": True,
            "selected_index": r.get("selected_index", r.get("index")),
            "reasoning": r.get("reasoning"),
        }

    if name == "finalize_spec":
        return {"success": True, "spec_locked": True}

    if name == "select_board_blocks":
        placed = r.get("placed_blocks")
        summary = {
            "success": True,
            "block_count": (len(placed) if isinstance(placed, list)
                            else r.get("block_count", 0)),
            "reasoning": r.get("reasoning"),
        }
        if r.get("board_size"):
            summary["board_size"] = r["board_size"]
        if r.get("warnings"):
            summary["warnings"] = r["warnings"]
        return summary

    if name == "generate_enclosure":
        code = r.get("open_scad_code") or r.get("code") or ""
        return {
            "success": True,
            "code": code,
            "code_length": len(code) or r.get("code_length", 0),
            "dimensions": extract_enclosure_dimensions(code),
            "features": extract_enclosure_features(code),
            "is_revision": r.get("is_revision", False),
        }

    if name == "generate_firmware":
        files = r.get("files") if isinstance(r.get("files"), list) else []
        return {
            "success": True,
            "files": files,
            "file_count": len(files) or r.get("file_count", 0),
            "file_names": [f["path"] for f in files if f.get("path")],
            "is_revision": r.get("is_revision", False),
        }

    if name == "validate_cross_stage":
        return {
            "valid": r.get("valid", r.get("issue_count", 0) == 0),
            "issue_count": r.get("issue_count", 0),
            "issues": r.get("issues", []),
            "suggestions": r.get("suggestions", []),
            "report": r.get("report"),
        }

    if name == "mark_stage_complete":
        return {"success": True, "stage": r.get("stage"), "status": "complete"}

    if name == "accept_and_render":
        return {
            "success": r.get("success", True),
            "stage": r.get("stage"),
            "message": r.get("message"),
            "next_step": r.get("next_step"),
        }

    # Unknown tool: keep small results, preview large ones
    encoded = json.dumps(result, default=str)
    if len(encoded) > PREVIEW_THRESHOLD:
        return {"success": True, "truncated": True, "preview": encoded[:PREVIEW_CHARS] + "..."}
    return result
