"""Tool definitions for the orchestrator (Anthropic tool-use format)."""

from __future__ import annotations

from enum import Enum


class ToolName(str, Enum):
    # Spec stage
    ANALYZE_FEASIBILITY = "analyze_feasibility"
    ANSWER_QUESTIONS_AUTO = "answer_questions_auto"
    GENERATE_BLUEPRINTS = "generate_blueprints"
    SELECT_BLUEPRINT = "select_blueprint"
    GENERATE_PROJECT_NAMES = "generate_project_names"
    SELECT_PROJECT_NAME = "select_project_name"
    FINALIZE_SPEC = "finalize_spec"
    # Board stage
    SELECT_BOARD_BLOCKS = "select_board_blocks"
    # Enclosure stage
    GENERATE_ENCLOSURE = "generate_enclosure"
    REVIEW_ENCLOSURE = "review_enclosure"
    # Firmware stage
    GENERATE_FIRMWARE = "generate_firmware"
    REVIEW_FIRMWARE = "review_firmware"
    # Control
    ACCEPT_AND_RENDER = "accept_and_render"
    VALIDATE_CROSS_STAGE = "validate_cross_stage"
    FIX_STAGE_ISSUE = "fix_stage_issue"
    MARK_STAGE_COMPLETE = "mark_stage_complete"
    REPORT_PROGRESS = "report_progress"
    REQUEST_USER_INPUT = "request_user_input"


_STAGES = ["spec", "board", "enclosure", "firmware", "export"]

TOOLS = [
    # ── Spec stage ──────────────────────────────────────────────────
    {
        "name": "analyze_feasibility",
        "description": (
            "Analyze whether the described device can be built from the block "
            "library. Returns manufacturability, a score, and the number of open "
            "questions. Always the first step of the spec stage."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "description": {
                    "type": "string",
                    "description": "The user's hardware description to analyze.",
                },
            },
            "required": ["description"],
        },
    },
    {
        "name": "answer_questions_auto",
        "description": (
            "Answer open questions from the feasibility analysis with sensible "
            "defaults (the first option of each). Use in autonomous mode."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "questions": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "IDs of the questions to answer.",
                },
                "reasoning": {
                    "type": "string",
                    "description": "Brief explanation of why these answers were chosen.",
                },
            },
            "required": ["questions", "reasoning"],
        },
    },
    {
        "name": "generate_blueprints",
        "description": "Generate one product concept image per style hint (usually 4).",
        "input_schema": {
            "type": "object",
            "properties": {
                "style_hints": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Style per blueprint, e.g. 'minimal', 'rugged', 'sleek', 'industrial'.",
                },
            },
            "required": ["style_hints"],
        },
    },
    {
        "name": "select_blueprint",
        "description": "Select one of the generated blueprints to proceed with.",
        "input_schema": {
            "type": "object",
            "properties": {
                "index": {"type": "integer", "description": "Index of the blueprint (0-based)."},
                "reasoning": {"type": "string", "description": "Why this blueprint was selected."},
            },
            "required": ["index", "reasoning"],
        },
    },
    {
        "name": "generate_project_names",
        "description": "Generate four candidate product names for the device.",
        "input_schema": {"type": "object", "properties": {}, "required": []},
    },
    {
        "name": "select_project_name",
        "description": "Pick one of the generated names by index, or supply a custom name.",
        "input_schema": {
            "type": "object",
            "properties": {
                "index": {"type": "integer", "description": "Index of the generated name (0-3)."},
                "custom_name": {"type": "string", "description": "A custom name instead of a generated one."},
                "reasoning": {"type": "string", "description": "Why this name was chosen."},
            },
            "required": ["reasoning"],
        },
    },
    {
        "name": "finalize_spec",
        "description": (
            "Lock the final specification from the decisions and feasibility "
            "analysis. Completes the spec stage."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "confirm": {"type": "boolean", "description": "Confirm the spec should be locked."},
            },
            "required": ["confirm"],
        },
    },

    # ── Board stage ─────────────────────────────────────────────────
    {
        "name": "select_board_blocks",
        "description": (
            "Select and place circuit blocks on the 12.7 mm board grid. Omit "
            "'blocks' to auto-select from the final spec."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "blocks": {
                    "type": "array",
                    "description": "Block placements on the grid.",
                    "items": {
                        "type": "object",
                        "properties": {
                            "block_slug": {"type": "string", "description": "Catalog slug, e.g. 'mcu-esp32c6'."},
                            "grid_x": {"type": "integer", "description": "Column (0-based)."},
                            "grid_y": {"type": "integer", "description": "Row (0-based)."},
                        },
                        "required": ["block_slug", "grid_x", "grid_y"],
                    },
                },
                "reasoning": {"type": "string", "description": "Selection and placement strategy."},
            },
            "required": ["reasoning"],
        },
    },

    # ── Enclosure stage ─────────────────────────────────────────────
    {
        "name": "generate_enclosure",
        "description": (
            "Have the enclosure specialist write parametric OpenSCAD code. "
            "Returns the full code plus extracted dimensions."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "style": {
                    "type": "string",
                    "enum": ["box", "rounded_box", "handheld", "wall_mount", "desktop"],
                    "description": "Enclosure style.",
                },
                "wall_thickness": {"type": "number", "description": "Wall thickness in mm (default 2)."},
                "corner_radius": {"type": "number", "description": "Corner radius in mm (default 3)."},
                "feedback": {"type": "string", "description": "Review feedback to address in this revision."},
            },
            "required": ["style"],
        },
    },
    {
        "name": "review_enclosure",
        "description": "Have the analyst review the enclosure against the spec. Returns score, issues and verdict.",
        "input_schema": {"type": "object", "properties": {}, "required": []},
    },

    # ── Firmware stage ──────────────────────────────────────────────
    {
        "name": "generate_firmware",
        "description": "Have the firmware specialist write ESP32-C6 code. Returns the full files.",
        "input_schema": {
            "type": "object",
            "properties": {
                "enable_wifi": {"type": "boolean", "description": "Enable WiFi connectivity."},
                "enable_ble": {"type": "boolean", "description": "Enable BLE connectivity."},
                "enable_ota": {"type": "boolean", "description": "Enable OTA updates."},
                "enable_deep_sleep": {"type": "boolean", "description": "Enable deep sleep for battery life."},
                "feedback": {"type": "string", "description": "Review feedback to address in this revision."},
            },
            "required": [],
        },
    },
    {
        "name": "review_firmware",
        "description": "Have the analyst review the firmware against spec and board. Returns score, issues and verdict.",
        "input_schema": {"type": "object", "properties": {}, "required": []},
    },

    # ── Control ─────────────────────────────────────────────────────
    {
        "name": "accept_and_render",
        "description": "Accept the current artifact after a successful review and move on.",
        "input_schema": {
            "type": "object",
            "properties": {
                "stage": {"type": "string", "enum": ["enclosure", "firmware"], "description": "Stage to accept."},
            },
            "required": ["stage"],
        },
    },
    {
        "name": "validate_cross_stage",
        "description": "Check consistency between stages. Call after each stage completes.",
        "input_schema": {
            "type": "object",
            "properties": {
                "check_type": {
                    "type": "string",
                    "enum": ["spec_satisfied", "pcb_fits_enclosure", "firmware_matches_board", "all"],
                    "description": "Which check to run.",
                },
            },
            "required": ["check_type"],
        },
    },
    {
        "name": "fix_stage_issue",
        "description": "Fix a validation issue by regenerating a stage with the fix as feedback.",
        "input_schema": {
            "type": "object",
            "properties": {
                "stage": {"type": "string", "enum": ["spec", "board", "enclosure", "firmware"],
                          "description": "Stage to fix."},
                "issue": {"type": "string", "description": "The issue found."},
                "fix": {"type": "string", "description": "How to fix it."},
            },
            "required": ["stage", "issue", "fix"],
        },
    },
    {
        "name": "mark_stage_complete",
        "description": "Mark a stage complete and advance to the next one.",
        "input_schema": {
            "type": "object",
            "properties": {
                "stage": {"type": "string", "enum": _STAGES, "description": "The stage that completed."},
            },
            "required": ["stage"],
        },
    },
    {
        "name": "report_progress",
        "description": "Report progress to the user interface.",
        "input_schema": {
            "type": "object",
            "properties": {
                "message": {"type": "string", "description": "Progress message."},
                "stage": {"type": "string", "enum": _STAGES, "description": "Current stage."},
                "percentage": {"type": "number", "description": "Completion percentage (0-100)."},
            },
            "required": ["message", "stage"],
        },
    },
    {
        "name": "request_user_input",
        "description": "Ask the user when a decision cannot be made automatically. Use sparingly.",
        "input_schema": {
            "type": "object",
            "properties": {
                "question": {"type": "string", "description": "The question to ask."},
                "options": {"type": "array", "items": {"type": "string"},
                            "description": "Choices, if multiple choice."},
                "context": {"type": "string", "description": "Why this decision matters."},
            },
            "required": ["question", "context"],
        },
    },
]
