"""Enclosure stage tools: OpenSCAD generation and review."""

from __future__ import annotations

import logging

from hwforge.agent.context import ToolContext
from hwforge.design import (
    extract_code_block, extract_enclosure_dimensions, extract_enclosure_features,
)
from hwforge.project import EnclosureArtifact
from hwforge.project.patches import enclosure_patch

from .prompts import build_enclosure_request, enclosure_messages, enclosure_review_messages
from .review import parse_review

log = logging.getLogger("hwforge.tools.enclosure")


async def generate_enclosure(ctx: ToolContext, args: dict) -> dict:
    style = args.get("style")
    feedback = args.get("feedback")
    project = ctx.project

    if project.final_spec is None or project.board is None:
        return {"error": "Spec and PCB must be complete before enclosure generation"}

    request = build_enclosure_request(
        project,
        style=style,
        wall_thickness=args.get("wall_thickness") or None,
        corner_radius=args.get("corner_radius") or None,
    )
    response = await ctx.client.chat(enclosure_messages(request, feedback),
                                     temperature=0.3, max_tokens=4096)
    code = extract_code_block(response.content) or response.content

    revision = project.enclosure.revision + 1 if project.enclosure else 1
    await ctx.apply(enclosure_patch(EnclosureArtifact(
        open_scad_code=code,
        style=request["style"]["type"],
        revision=revision,
    )))
    log.info("Enclosure revision %d: %d chars", revision, len(code))

    return {
        "success": True,
        "code": code,
        "code_length": len(code),
        "dimensions": extract_enclosure_dimensions(code),
        "features": extract_enclosure_features(code),
        "is_revision": bool(feedback),
    }


async def review_enclosure(ctx: ToolContext, args: dict) -> dict:
    project = ctx.project
    if project.enclosure is None or not project.enclosure.open_scad_code:
        return {"error": "No enclosure code to review"}
    if project.final_spec is None:
        return {"error": "No specification to review against"}

    response = await ctx.client.chat(enclosure_review_messages(project),
                                     temperature=0.2, max_tokens=2048)
    return parse_review(response.content)
