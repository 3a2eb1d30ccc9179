"""Firmware stage tools: code generation and review."""

from __future__ import annotations

import logging

from hwforge.agent.context import ToolContext
from hwforge.design import extract_json_object
from hwforge.project import FirmwareArtifact, FirmwareFile
from hwforge.project.patches import firmware_patch

from .prompts import build_firmware_request, firmware_messages, firmware_review_messages
from .review import parse_review

log = logging.getLogger("hwforge.tools.firmware")

LANGUAGES = ("cpp", "c", "h", "json")


def to_firmware_file(raw: dict) -> FirmwareFile:
    language = raw.get("language")
    return FirmwareFile(
        path=str(raw.get("path", "src/main.cpp")),
        content=str(raw.get("content", "")),
        language=language if language in LANGUAGES else "cpp",
    )


def parse_firmware_files(content: str) -> list[FirmwareFile]:
    """Files from ``{"files": [...]}``; the raw reply as main.cpp otherwise."""
    parsed = extract_json_object(content)
    raw_files = parsed.get("files") if parsed else None
    if not isinstance(raw_files, list):
        log.warning("Firmware response was not a file list, keeping it as src/main.cpp")
        return [FirmwareFile(path="src/main.cpp", content=content, language="cpp")]
    return [to_firmware_file(f) for f in raw_files if isinstance(f, dict)]


async def generate_firmware(ctx: ToolContext, args: dict) -> dict:
    feedback = args.get("feedback")
    project = ctx.project

    if project.final_spec is None or project.board is None:
        return {"error": "Spec and PCB must be complete before firmware generation"}

    options = {key: bool(args[key])
               for key in ("enable_wifi", "enable_ble", "enable_ota", "enable_deep_sleep")
               if args.get(key) is not None}
    request = build_firmware_request(project, options)
    response = await ctx.client.chat(firmware_messages(request, feedback),
                                     temperature=0.3, max_tokens=8192)
    files = parse_firmware_files(response.content)

    revision = project.firmware.revision + 1 if project.firmware else 1
    await ctx.apply(firmware_patch(FirmwareArtifact(files=files, revision=revision)))
    log.info("Firmware revision %d: %d file(s)", revision, len(files))

    return {
        "success": True,
        "files": [f.model_dump() for f in files],
        "file_count": len(files),
        "file_names": [f.path for f in files],
        "is_revision": bool(feedback),
    }


async def review_firmware(ctx: ToolContext, args: dict) -> dict:
    project = ctx.project
    if project.firmware is None or not project.firmware.files:
        return {"error": "No firmware code to review"}
    if project.final_spec is None:
        return {"error": "No specification to review against"}

    response = await ctx.client.chat(firmware_review_messages(project),
                                     temperature=0.2, max_tokens=2048)
    return parse_review(response.content, with_missing_features=True)
