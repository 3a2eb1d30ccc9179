"""Spec stage tools: feasibility, questions, blueprints, naming, finalize."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from hwforge.agent.context import ToolContext
from hwforge.design import extract_json_object
from hwforge.errors import FeasibilityParseError
from hwforge.project import (
    Blueprint, Decision, FinalSpec, IOEntry, OpenQuestion, now_iso,
)
from hwforge.project.patches import (
    blueprint_selection_patch, blueprints_patch, decisions_patch,
    feasibility_patch, final_spec_patch,
)

from .prompts import feasibility_messages, naming_messages

log = logging.getLogger("hwforge.tools.spec")

FALLBACK_NAMES = [
    {"name": "Project Alpha", "style": "abstract", "reasoning": "Default fallback"},
    {"name": "DevBoard One", "style": "compound", "reasoning": "Default fallback"},
    {"name": "Prototype", "style": "punchy", "reasoning": "Default fallback"},
    {"name": "HardwareKit", "style": "descriptive", "reasoning": "Default fallback"},
]

DEFAULT_LED_COUNT = 4


def _field(data: dict, snake: str, camel: str, default: Any = None) -> Any:
    """Read a key the model may have written in either case style."""
    if snake in data:
        return data[snake]
    return data.get(camel, default)


def _parse_questions(raw: Any) -> list[OpenQuestion]:
    questions = []
    for entry in raw if isinstance(raw, list) else []:
        if not isinstance(entry, dict) or not entry.get("id") or not entry.get("question"):
            log.debug("Skipping malformed open question: %r", entry)
            continue
        options = [str(o) for o in entry.get("options") or []]
        questions.append(OpenQuestion(id=str(entry["id"]), question=entry["question"],
                                      options=options))
    return questions


def _item_labels(section: Any) -> list[str]:
    """``{"items": [...]}`` from the feasibility JSON as plain strings."""
    items = section.get("items", []) if isinstance(section, dict) else []
    labels = []
    for item in items:
        if isinstance(item, dict):
            item = item.get("type") or item.get("name") or ""
        if item:
            labels.append(str(item))
    return labels


# ── Feasibility ────────────────────────────────────────────────────

async def analyze_feasibility(ctx: ToolContext, args: dict) -> dict:
    description = args.get("description") or ctx.project.description

    response = await ctx.client.chat(feasibility_messages(description), temperature=0.3)
    feasibility = extract_json_object(response.content)
    if feasibility is None:
        raise FeasibilityParseError("No JSON in feasibility response")

    questions = _parse_questions(_field(feasibility, "open_questions", "openQuestions", []))
    await ctx.apply(feasibility_patch(feasibility, questions))
    log.info("Feasibility: manufacturable=%s, %d open question(s)",
             feasibility.get("manufacturable"), len(questions))

    return {
        "success": True,
        "manufacturable": feasibility.get("manufacturable"),
        "score": _field(feasibility, "overall_score", "overallScore"),
        "open_question_count": len(questions),
    }


async def answer_questions_auto(ctx: ToolContext, args: dict) -> dict:
    question_ids = args.get("questions") or []
    reasoning = args.get("reasoning", "")

    if not ctx.project.open_questions:
        return {"error": "No open questions to answer"}

    by_id = {q.id: q for q in ctx.project.open_questions}
    decisions = []
    for qid in question_ids:
        question = by_id.get(qid)
        if question is None or not question.options:
            continue
        decisions.append(Decision(
            question_id=qid,
            question=question.question,
            answer=question.options[0],
            timestamp=now_iso(),
        ))

    await ctx.apply(decisions_patch(decisions))
    return {"success": True, "answered_count": len(decisions), "reasoning": reasoning}


# ── Blueprints ─────────────────────────────────────────────────────

async def generate_blueprints(ctx: ToolContext, args: dict) -> dict:
    style_hints = args.get("style_hints") or []
    if ctx.image_client is None:
        return {"error": "No image generator configured"}
    if not style_hints:
        return {"error": "No style hints given"}

    prompts = [f"{ctx.project.description} - {style} style" for style in style_hints]
    results = await asyncio.gather(
        *(ctx.image_client.generate(prompt) for prompt in prompts),
        return_exceptions=True,
    )

    blueprints = []
    for prompt, style, result in zip(prompts, style_hints, results):
        if isinstance(result, BaseException):
            log.warning("Blueprint '%s' failed: %s", style, result)
            continue
        blueprints.append(Blueprint(url=result, prompt=prompt, style=style))

    if not blueprints:
        return {"error": "All image generations failed"}

    await ctx.apply(blueprints_patch(blueprints))
    return {"success": True, "blueprint_count": len(blueprints)}


async def select_blueprint(ctx: ToolContext, args: dict) -> dict:
    index = args.get("index")
    reasoning = args.get("reasoning", "")

    if not isinstance(index, int) or not 0 <= index < len(ctx.project.blueprints):
        return {"error": "Invalid blueprint index"}

    await ctx.apply(blueprint_selection_patch(index))
    return {"success": True, "selected_index": index, "reasoning": reasoning}


# ── Naming ─────────────────────────────────────────────────────────

async def generate_project_names(ctx: ToolContext, args: dict) -> dict:
    response = await ctx.client.chat(naming_messages(ctx.project),
                                     temperature=0.8, max_tokens=1024)
    parsed = extract_json_object(response.content)
    names = [n for n in (parsed or {}).get("names", []) if isinstance(n, dict) and n.get("name")]
    if not names:
        log.warning("Could not parse project names, using fallbacks")
        names = [dict(n) for n in FALLBACK_NAMES]

    ctx.set_generated_names(names)
    return {
        "success": True,
        "names": names,
        "message": f"Generated {len(names)} name options. Select one or provide a custom name.",
    }


async def select_project_name(ctx: ToolContext, args: dict) -> dict:
    index = args.get("index")
    custom_name = args.get("custom_name") or args.get("customName")
    reasoning = args.get("reasoning")

    if custom_name:
        ctx.set_selected_name(custom_name)
        return {"success": True, "selected_name": custom_name,
                "reasoning": reasoning or "Custom name provided"}

    if isinstance(index, int) and 0 <= index < len(ctx.generated_names):
        chosen = ctx.generated_names[index]
        ctx.set_selected_name(chosen["name"])
        return {"success": True, "selected_name": chosen["name"],
                "reasoning": reasoning or chosen.get("reasoning", "")}

    return {"error": "Must provide either index (0-3) or custom_name"}


# ── Finalize ───────────────────────────────────────────────────────

def _leading_int(text: str) -> int | None:
    match = re.match(r"\s*(\d+)", text)
    return int(match.group(1)) if match else None


def build_final_spec(ctx: ToolContext) -> FinalSpec:
    """Final spec from defaults, decisions, and feasibility items."""
    project = ctx.project
    spec = FinalSpec(
        name=ctx.selected_name or project.description[:50] or "Hardware Project",
        summary=project.description,
        locked=True,
        locked_at=now_iso(),
    )

    for decision in project.decisions:
        if not decision.question or not decision.answer:
            continue
        q = decision.question.lower()
        a = decision.answer.lower()
        if "power" in q:
            spec.power.source = decision.answer
        if "display" in q and "oled" in a:
            spec.outputs.append(IOEntry(type="OLED Display", count=1, notes='0.96" I2C'))
        if "led" in q:
            count = _leading_int(a) or DEFAULT_LED_COUNT
            spec.outputs.append(IOEntry(type="WS2812B LEDs", count=count, notes="RGB addressable"))

    if project.feasibility:
        for label in _item_labels(project.feasibility.get("inputs")):
            spec.inputs.append(IOEntry(type=label))
        for label in _item_labels(project.feasibility.get("outputs")):
            if not any(label.lower() in o.type.lower() for o in spec.outputs):
                spec.outputs.append(IOEntry(type=label))

    return spec


async def finalize_spec(ctx: ToolContext, args: dict) -> dict:
    if not args.get("confirm"):
        return {"error": "Confirmation required to finalize spec"}

    spec = build_final_spec(ctx)
    await ctx.apply(final_spec_patch(spec))
    log.info("Spec locked: %s (%d inputs, %d outputs)",
             spec.name, len(spec.inputs), len(spec.outputs))
    return {"success": True, "spec_locked": True, "name": spec.name}
