"""Text extraction helpers for model output and generated enclosure code.

Everything here is pure regex work: no model calls, no state. The
enclosure extractors feed result compression so the model still sees the
key dimensions after the full code has scrolled out of its context.
"""

from __future__ import annotations

import json
import re
from typing import Any


# ── Model output ───────────────────────────────────────────────────

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)
_CODE_BLOCK_RE = re.compile(r"```(?:openscad|scad)?\s*([\s\S]*?)```")


def extract_json_object(content: str) -> dict | None:
    """Parse the outermost ``{...}`` span of ``content``; None if absent or invalid."""
    match = _JSON_OBJECT_RE.search(content)
    if not match:
        return None
    try:
        value = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def extract_code_block(content: str) -> str:
    """First fenced code block, or the whole response when there is none."""
    match = _CODE_BLOCK_RE.search(content)
    return match.group(1).strip() if match else content.strip()


# ── Enclosure code ─────────────────────────────────────────────────

_DIMENSION_PATTERNS = {
    "case_w": r"case_w\s*=\s*(\d+(?:\.\d+)?)",
    "case_h": r"case_h\s*=\s*(\d+(?:\.\d+)?)",
    "case_d": r"case_d\s*=\s*(\d+(?:\.\d+)?)",
    "wall": r"wall(?:_thickness)?\s*=\s*(\d+(?:\.\d+)?)",
    "pcb_w": r"pcb_w\s*=\s*(\d+(?:\.\d+)?)",
    "pcb_h": r"pcb_h\s*=\s*(\d+(?:\.\d+)?)",
    "corner_radius": r"corner_radius\s*=\s*(\d+(?:\.\d+)?)",
}


def extract_enclosure_dimensions(code: str) -> dict[str, Any] | None:
    """Pull the key parametric dimensions out of enclosure code.

    Returns None when nothing recognisable is present.
    """
    if not code:
        return None

    dims: dict[str, Any] = {}
    for key, pattern in _DIMENSION_PATTERNS.items():
        match = re.search(pattern, code)
        if match:
            dims[key] = float(match.group(1))

    button_holes = len(re.findall(r"button_hole|btn_.*_pos", code))
    if button_holes:
        dims["button_holes"] = button_holes
    if "usb" in code:
        dims["has_usb_cutout"] = "yes"
    led_holes = len(re.findall(r"led_hole|led_pos", code))
    if led_holes:
        dims["led_holes"] = led_holes

    return dims or None


def extract_enclosure_features(code: str) -> dict[str, Any] | None:
    """Rough feature summary of enclosure code, by keyword.

    Only features that are present get a key; ``style`` is always set for
    non-empty code.
    """
    if not code:
        return None

    features: dict[str, Any] = {}
    lower = code.lower()

    buttons = len(re.findall(r"button|btn", lower))
    if buttons:
        features["button_count"] = buttons
    if re.search(r"usb|type.?c", lower):
        features["has_usb_cutout"] = True
    leds = len(re.findall(r"led|light.?pipe", lower))
    if leds:
        features["led_count"] = leds
    mounts = len(re.findall(r"mount|screw|boss", lower))
    if mounts:
        features["has_mounting_holes"] = True
        features["mounting_count"] = mounts
    if re.search(r"sensor|pir|vent|opening", lower):
        features["has_sensor_openings"] = True
    if re.search(r"lid|base|top|bottom", lower):
        features["has_lid_design"] = True
    if re.search(r"snap|clip|latch|hinge", lower):
        features["has_snap_fits"] = True

    if re.search(r"rounded|fillet|chamfer", lower):
        features["style"] = "rounded"
    elif re.search(r"wall.?mount", lower):
        features["style"] = "wall_mount"
    elif re.search(r"handheld|ergonomic", lower):
        features["style"] = "handheld"
    else:
        features["style"] = "box"

    return features
