"""Cross-stage validation — does each stage still agree with the others?

Three independent checks, all heuristic (pattern matching over slugs and
generated text, not electrical or mechanical analysis):

  spec_satisfied          final spec requirements have matching board blocks
  pcb_fits_enclosure      enclosure interior leaves clearance around the board
  firmware_matches_board  firmware defines every GPIO the board assigns

A check whose inputs are missing passes silently; the stage that would
produce them has not run yet.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal

from hwforge.project import ProjectSpec, Stage

CheckType = Literal["spec_satisfied", "pcb_fits_enclosure", "firmware_matches_board", "all"]
CHECK_TYPES: tuple[str, ...] = ("spec_satisfied", "pcb_fits_enclosure", "firmware_matches_board", "all")

CLEARANCE_MM = 2        # per side

# Output keyword → slug patterns that satisfy it
REQUIRED_BLOCK_PATTERNS: dict[str, list[str]] = {
    "temperature": ["bme280", "sht40"],
    "humidity": ["bme280", "sht40"],
    "pressure": ["bme280"],
    "acceleration": ["lis3dh"],
    "motion": ["lis3dh", "pir"],
    "light": ["veml7700"],
    "distance": ["vl53l0x"],
    "led": ["ws2812b", "output-led"],
    "display": ["oled", "lcd"],
    "buzzer": ["buzzer"],
    "relay": ["relay"],
}

I2C_DEVICES: dict[str, str] = {
    "bme280": "0x76",
    "sht40": "0x44",
    "lis3dh": "0x18",
    "veml7700": "0x10",
    "vl53l0x": "0x29",
    "ssd1306": "0x3C",
}


# ── Result types ───────────────────────────────────────────────────

@dataclass
class ValidationIssue:
    id: str
    severity: str       # error | warning | info
    stage: str
    message: str
    details: str | None = None

    def to_dict(self) -> dict:
        d = {"id": self.id, "severity": self.severity, "stage": self.stage,
             "message": self.message}
        if self.details:
            d["details"] = self.details
        return d


@dataclass
class ValidationSuggestion:
    issue_id: str
    stage: str
    action: str
    auto_fixable: bool = False

    def to_dict(self) -> dict:
        return {"issue_id": self.issue_id, "stage": self.stage,
                "action": self.action, "auto_fixable": self.auto_fixable}


@dataclass
class ValidationResult:
    issues: list[ValidationIssue] = field(default_factory=list)
    suggestions: list[ValidationSuggestion] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not any(i.severity == "error" for i in self.issues)

    def extend(self, other: ValidationResult) -> None:
        self.issues.extend(other.issues)
        self.suggestions.extend(other.suggestions)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "issues": [i.to_dict() for i in self.issues],
            "suggestions": [s.to_dict() for s in self.suggestions],
        }


@dataclass
class EnclosureDimensions:
    inner_width: float
    inner_height: float
    wall_thickness: float


def _mm(value: float) -> str:
    return f"{value:g}"


# ── Entry point ────────────────────────────────────────────────────

def validate_cross_stage(project: ProjectSpec, check_type: str = "all") -> ValidationResult:
    """Run the requested check (or all of them) against ``project``."""
    if check_type not in CHECK_TYPES:
        raise ValueError(f"Unknown check type '{check_type}'")

    result = ValidationResult()
    if check_type in ("all", "spec_satisfied"):
        result.extend(validate_spec_satisfied(project))
    if check_type in ("all", "pcb_fits_enclosure"):
        result.extend(validate_pcb_fits_enclosure(project))
    if check_type in ("all", "firmware_matches_board"):
        result.extend(validate_firmware_matches_board(project))
    return result


# ── Checks ─────────────────────────────────────────────────────────

def validate_spec_satisfied(project: ProjectSpec) -> ValidationResult:
    result = ValidationResult()
    spec = project.final_spec
    if spec is None or project.board is None:
        return result

    slugs = [b.block_slug.lower() for b in project.board.placed_blocks]
    board = Stage.BOARD.value

    for output in spec.outputs:
        if not output.type:
            continue
        kind = output.type.lower()
        for key, patterns in REQUIRED_BLOCK_PATTERNS.items():
            if key not in kind:
                continue
            if any(p in slug for slug in slugs for p in patterns):
                continue
            issue_id = f"missing_block_{key}"
            result.issues.append(ValidationIssue(
                id=issue_id,
                severity="error",
                stage=board,
                message=f"Missing PCB block for {output.type}",
                details=(f"Spec requires {output.type} but no matching block "
                         f"({' or '.join(patterns)}) is placed"),
            ))
            result.suggestions.append(ValidationSuggestion(
                issue_id=issue_id,
                stage=board,
                action=f"Add a {patterns[0]} block to satisfy {output.type} requirement",
                auto_fixable=True,
            ))

    source = spec.power.source
    if not any(_power_block_matches(source, slug) for slug in slugs):
        result.issues.append(ValidationIssue(
            id="missing_power_block",
            severity="error",
            stage=board,
            message=f"Missing power block for {source}",
            details=f"Spec requires {source} but no matching power block is placed",
        ))
        result.suggestions.append(ValidationSuggestion(
            issue_id="missing_power_block",
            stage=board,
            action=f"Add a power block matching {source}",
            auto_fixable=True,
        ))

    return result


def _power_block_matches(source: str, slug: str) -> bool:
    s = source.lower()
    if "usb" in s:
        return "usb" in slug
    if "battery" in s or "lipo" in s:
        return "lipo" in slug or "battery" in slug
    if "aa" in s or "aaa" in s:
        return "boost" in slug or "battery" in slug
    return "power" in slug


def validate_pcb_fits_enclosure(project: ProjectSpec) -> ValidationResult:
    result = ValidationResult()
    board = project.board
    enclosure = project.enclosure
    if board is None or board.board_size is None or enclosure is None or not enclosure.open_scad_code:
        return result

    dims = parse_enclosure_dimensions(enclosure.open_scad_code)
    stage = Stage.ENCLOSURE.value
    if dims is None:
        # Unparseable is reported but does not fail the check
        result.issues.append(ValidationIssue(
            id="enclosure_parse_error",
            severity="warning",
            stage=stage,
            message="Could not parse enclosure dimensions",
            details="Unable to extract dimensions from OpenSCAD code for validation",
        ))
        return result

    size = board.board_size
    margin = CLEARANCE_MM * 2

    for issue_id, label, inner, pcb in (
        ("enclosure_too_narrow", "width", dims.inner_width, size.width),
        ("enclosure_too_short", "height", dims.inner_height, size.height),
    ):
        if inner >= pcb + margin:
            continue
        adjective = "narrow" if label == "width" else "short"
        result.issues.append(ValidationIssue(
            id=issue_id,
            severity="error",
            stage=stage,
            message=f"Enclosure too {adjective} for PCB",
            details=(f"Enclosure inner {label} ({_mm(inner)}mm) < PCB {label} "
                     f"({_mm(pcb)}mm) + {margin}mm clearance"),
        ))
        result.suggestions.append(ValidationSuggestion(
            issue_id=issue_id,
            stage=stage,
            action=f"Increase enclosure {label} to at least {_mm(pcb + margin + 2)}mm",
            auto_fixable=True,
        ))

    return result


def validate_firmware_matches_board(project: ProjectSpec) -> ValidationResult:
    result = ValidationResult()
    board = project.board
    firmware = project.firmware
    if board is None or firmware is None:
        return result

    code = "\n".join(f.content for f in firmware.files)
    stage = Stage.FIRMWARE.value

    for net in board.net_list:
        if not net.gpio:
            continue
        num = re.sub(r"[^0-9]", "", net.gpio)
        name = net.net.upper()
        patterns = [
            rf"GPIO{num}",
            rf"PIN_{re.escape(name)}",
            rf"#define.*{num}",
            rf"const.*=.*{num}",
            rf"gpio_num_t.*{num}",
        ]
        if any(re.search(p, code, re.IGNORECASE) for p in patterns):
            continue
        issue_id = f"missing_gpio_{net.net}"
        result.issues.append(ValidationIssue(
            id=issue_id,
            severity="error",
            stage=stage,
            message=f"Firmware missing GPIO for {net.net}",
            details=f"PCB assigns {net.gpio} to {net.net} but firmware doesn't define this pin",
        ))
        result.suggestions.append(ValidationSuggestion(
            issue_id=issue_id,
            stage=stage,
            action=f"Add pin definition: #define PIN_{name} {num}",
            auto_fixable=True,
        ))

    found = {a.lower() for a in re.findall(r"0x[0-9a-fA-F]{2}", code)}
    for placed in board.placed_blocks:
        slug = placed.block_slug.lower()
        for device, address in I2C_DEVICES.items():
            if device not in slug:
                continue
            if address.lower() in found:
                continue
            result.issues.append(ValidationIssue(
                id=f"missing_i2c_{device}",
                severity="warning",
                stage=stage,
                message=f"Firmware may be missing I2C address for {device}",
                details=f"Expected I2C address {address} for {device} not found in firmware",
            ))

    return result


# ── Enclosure dimensions ───────────────────────────────────────────

_ENCLOSURE_VARS = {
    "pcb_width": re.compile(r"pcb_width\s*=\s*(\d+(?:\.\d+)?)"),
    "pcb_height": re.compile(r"pcb_height\s*=\s*(\d+(?:\.\d+)?)"),
    "wall_thickness": re.compile(r"wall(?:_thickness)?\s*=\s*(\d+(?:\.\d+)?)"),
    "inner_width": re.compile(r"inner_width\s*=\s*(\d+(?:\.\d+)?)"),
    "inner_height": re.compile(r"inner_height\s*=\s*(\d+(?:\.\d+)?)"),
    "case_width": re.compile(r"case_width\s*=\s*(\d+(?:\.\d+)?)"),
    "case_height": re.compile(r"case_height\s*=\s*(\d+(?:\.\d+)?)"),
}


def parse_enclosure_dimensions(code: str) -> EnclosureDimensions | None:
    """Interior size of an enclosure from its parametric variables.

    Interior width, in order of preference: ``inner_width``; ``pcb_width``
    plus 1 mm; ``case_width`` minus two walls (wall defaults to 2 mm).
    Height works the same way. Returns None when either axis has none.
    """
    values: dict[str, float] = {}
    for key, pattern in _ENCLOSURE_VARS.items():
        match = pattern.search(code)
        if match:
            values[key] = float(match.group(1))

    wall = values.get("wall_thickness") or 2.0

    def axis(inner: str, pcb: str, case: str) -> float | None:
        if values.get(inner):
            return values[inner]
        if values.get(pcb):
            return values[pcb] + 1
        if values.get(case):
            return values[case] - wall * 2
        return None

    width = axis("inner_width", "pcb_width", "case_width")
    height = axis("inner_height", "pcb_height", "case_height")
    if width is None or height is None:
        return None
    return EnclosureDimensions(inner_width=width, inner_height=height, wall_thickness=wall)


# ── Report ─────────────────────────────────────────────────────────

def generate_validation_report(result: ValidationResult) -> str:
    """Human-readable report, also handed back to the model."""
    lines = ["=== Cross-Stage Validation Report ===", ""]
    lines.append("Status: PASSED" if result.valid else "Status: FAILED")
    lines.append("")

    if not result.issues:
        lines.append("No issues found.")
    else:
        lines.append(f"Found {len(result.issues)} issue(s):")
        lines.append("")
        for issue in result.issues:
            lines.append(f"[{issue.severity.upper()}] {issue.stage}: {issue.message}")
            if issue.details:
                lines.append(f"  Details: {issue.details}")

    if result.suggestions:
        lines.append("")
        lines.append("Suggestions:")
        for s in result.suggestions:
            suffix = " (auto-fixable)" if s.auto_fixable else ""
            lines.append(f"  - {s.stage}: {s.action}{suffix}")

    return "\n".join(lines)
