"""Specialist prompts and the structured requests they are built from.

Each specialist (feasibility analyst, namer, enclosure designer, firmware
writer, reviewer) is one model call with its own system prompt. The
request builders turn the project document into the JSON brief that goes
into the user message.
"""

from __future__ import annotations

import json
from typing import Any

from hwforge.llm import ConversationMessage
from hwforge.project import ProjectSpec


# ── Feasibility ────────────────────────────────────────────────────

FEASIBILITY_SYSTEM_PROMPT = """\
You are a hardware design analyst. Decide whether a product description can
be built from a fixed library of 12.7 mm grid circuit blocks around an
ESP32-C6 (WiFi 6, BLE 5.3, Zigbee/Thread).

Power: USB-C, LiPo with USB-C charging, 2xAA/AAA with boost, CR2032.
Sensors: BME280, SHT40, LIS3DH, VEML7700, VL53L0X, PIR.
Outputs: WS2812B LEDs, piezo buzzer, relay, DRV8833 motor driver, SSD1306 OLED.
Inputs: up to 4 buttons, rotary encoder.

Reject anything needing mains or >24V, safety-critical or medical use,
processing beyond the ESP32-C6, precision analog, or RF beyond
WiFi/BLE/Zigbee.

Respond with one JSON object and nothing else:
{
  "manufacturable": true,
  "overall_score": 88,
  "rejection_reason": null,
  "communication": {"type": "WiFi", "confidence": 95, "notes": "..."},
  "power": {"options": ["USB-C", "LiPo with USB-C charging"], "confidence": 85},
  "inputs": {"items": ["Button"], "confidence": 90},
  "outputs": {"items": ["Temperature", "Status LED"], "confidence": 90},
  "open_questions": [
    {"id": "power-source", "question": "What power source do you prefer?",
     "options": ["USB-C", "LiPo with USB-C charging", "2xAA batteries"]}
  ]
}
Always ask about the power source unless the description states it."""


def feasibility_messages(description: str) -> list[ConversationMessage]:
    return [
        ConversationMessage.system(FEASIBILITY_SYSTEM_PROMPT),
        ConversationMessage.user(
            f'Analyze this product description for feasibility:\n"{description}"\n\n'
            "Respond with JSON only."
        ),
    ]


# ── Naming ─────────────────────────────────────────────────────────

NAMING_SYSTEM_PROMPT = """\
You name hardware products. Propose exactly four names, each in a
different style: abstract, compound, punchy, descriptive. Names are one
or two words, easy to say, and not existing trademarks.

Respond with JSON only:
{"names": [{"name": "...", "style": "abstract", "reasoning": "..."}]}"""


def naming_messages(project: ProjectSpec) -> list[ConversationMessage]:
    context = {"description": project.description}
    if project.feasibility:
        context["feasibility"] = project.feasibility
    if project.decisions:
        context["decisions"] = [d.model_dump() for d in project.decisions]
    return [
        ConversationMessage.system(NAMING_SYSTEM_PROMPT),
        ConversationMessage.user(
            "Name this product:\n" + json.dumps(context, indent=2, default=str)
        ),
    ]


# ── Enclosure ──────────────────────────────────────────────────────

ENCLOSURE_SYSTEM_PROMPT = """\
You write parametric OpenSCAD enclosures for small circuit boards.
Declare every dimension as a top-level variable before any geometry,
using these names where they apply: case_width, case_height, case_depth,
wall_thickness, corner_radius, pcb_width, pcb_height, inner_width,
inner_height. Leave at least 2 mm clearance around the board on every
side. Add a cutout for every component marked requires_cutout, mounting
bosses for the board's holes, and a separate lid.

Return the complete file in one ```openscad fenced block."""


def build_enclosure_request(project: ProjectSpec, style: str | None = None,
                            wall_thickness: float | None = None,
                            corner_radius: float | None = None) -> dict[str, Any]:
    """Enclosure brief: board outline, parts needing cutouts, style."""
    board = project.board
    size = board.board_size if board else None
    pcb_w = size.width if size else 50
    pcb_h = size.height if size else 40
    spec = project.final_spec

    components: list[dict[str, Any]] = [{
        "type": "usb_c",
        "name": "USB-C Port",
        "position": {"x": pcb_w / 2, "y": 0, "z": 3},
        "dimensions": {"width": 9.5, "height": 3.5, "depth": 8},
        "side": "back",
        "requires_cutout": True,
    }]

    if spec:
        for output in spec.outputs:
            kind = output.type.lower()
            if "oled" in kind or "display" in kind:
                components.append({
                    "type": "oled",
                    "name": "OLED Display",
                    "position": {"x": pcb_w / 2, "y": pcb_h / 2, "z": 10},
                    "dimensions": {"width": 26, "height": 14, "depth": 2},
                    "side": "top",
                    "requires_cutout": True,
                })
            if "led" in kind:
                for i in range(output.count):
                    components.append({
                        "type": "led",
                        "name": f"LED {i + 1}",
                        "position": {"x": 10 + i * 8, "y": 5, "z": 8},
                        "dimensions": {"width": 5, "height": 5, "depth": 3},
                        "side": "top",
                        "requires_cutout": True,
                    })
        for entry in spec.inputs:
            if "button" in entry.type.lower():
                for i in range(entry.count):
                    components.append({
                        "type": "button",
                        "name": f"Button {i + 1}",
                        "position": {"x": pcb_w - 10 - i * 12, "y": pcb_h / 2, "z": 8},
                        "dimensions": {"width": 8, "height": 8, "depth": 5},
                        "side": "top",
                        "requires_cutout": True,
                    })

    style_type = "rounded_box"
    if spec and spec.enclosure.style:
        hint = spec.enclosure.style.lower()
        if "wall" in hint:
            style_type = "wall_mount"
        elif "hand" in hint:
            style_type = "handheld"
        elif "desk" in hint:
            style_type = "desktop"

    return {
        "project_name": spec.name if spec else "",
        "project_description": project.description,
        "pcb": {
            "width": pcb_w,
            "height": pcb_h,
            "thickness": 1.6,
            "mounting_holes": [
                {"x": 3, "y": 3, "diameter": 3},
                {"x": pcb_w - 3, "y": 3, "diameter": 3},
                {"x": 3, "y": pcb_h - 3, "diameter": 3},
                {"x": pcb_w - 3, "y": pcb_h - 3, "diameter": 3},
            ],
        },
        "components": components,
        "style": {
            "type": style or style_type,
            "wall_thickness": wall_thickness if wall_thickness is not None else 2,
            "corner_radius": corner_radius if corner_radius is not None else 3,
            "split_plane": "horizontal",
        },
    }


def enclosure_messages(request: dict, feedback: str | None = None) -> list[ConversationMessage]:
    prompt = ("Design the enclosure for this board:\n"
              + json.dumps(request, indent=2, default=str))
    if feedback:
        prompt += f"\n\n## PREVIOUS REVIEW FEEDBACK - Address these issues:\n{feedback}"
    return [
        ConversationMessage.system(ENCLOSURE_SYSTEM_PROMPT),
        ConversationMessage.user(prompt),
    ]


# ── Firmware ───────────────────────────────────────────────────────

FIRMWARE_SYSTEM_PROMPT = """\
You write PlatformIO firmware (Arduino framework) for an ESP32-C6 board.
Define every pin as `#define PIN_<NAME> <gpio>` using exactly the
assignments given. Use the I2C addresses given. Keep the main loop
non-blocking.

Respond with JSON only:
{"files": [{"path": "src/main.cpp", "content": "...", "language": "cpp"},
           {"path": "platformio.ini", "content": "...", "language": "json"}]}
Allowed languages: cpp, c, h, json."""

I2C_SDA_GPIO = 6
I2C_SCL_GPIO = 7
LED_BUILTIN_GPIO = 8
FIRST_FREE_GPIO = 10

_SENSORS = [
    (("temperature", "humidity", "bme"),
     {"type": "Environmental", "model": "BME280", "interface": "I2C", "address": "0x76",
      "readings": ["temperature", "humidity", "pressure"]}),
    (("accelerometer", "motion"),
     {"type": "Motion", "model": "LIS3DH", "interface": "I2C", "address": "0x18",
      "readings": ["acceleration_x", "acceleration_y", "acceleration_z"]}),
    (("light", "ambient"),
     {"type": "Light", "model": "VEML7700", "interface": "I2C", "address": "0x10",
      "readings": ["lux", "white"]}),
    (("distance", "proximity"),
     {"type": "Distance", "model": "VL53L0X", "interface": "I2C", "address": "0x29",
      "readings": ["distance_mm"]}),
]


def _gpio_number(gpio: str) -> int:
    return int("".join(ch for ch in gpio if ch.isdigit()) or 0)


def build_firmware_request(project: ProjectSpec, options: dict[str, bool]) -> dict[str, Any]:
    """Firmware brief: sensors, outputs and pin assignments.

    Pins come from the board's net list when one exists, so the code
    matches the board; otherwise they are numbered from GPIO10 up.
    """
    spec = project.final_spec
    sensors: list[dict] = []
    outputs: list[dict] = []
    pins: list[dict] = []
    next_gpio = FIRST_FREE_GPIO

    def claim(name: str, mode: str, description: str) -> int:
        nonlocal next_gpio
        pin = next_gpio
        next_gpio += 1
        pins.append({"name": name, "gpio": pin, "mode": mode, "description": description})
        return pin

    if spec:
        for output in spec.outputs:
            kind = output.type.lower()
            for keywords, sensor in _SENSORS:
                if any(k in kind for k in keywords):
                    sensors.append(dict(sensor))
            if "led" in kind or "ws2812" in kind or "neopixel" in kind:
                outputs.append({"type": "WS2812B LEDs", "model": "WS2812B", "interface": "GPIO",
                                "pin": claim("LED_DATA", "OUTPUT", "WS2812B data pin"),
                                "count": output.count})
            if "oled" in kind or "display" in kind:
                outputs.append({"type": "OLED Display", "model": "SSD1306", "interface": "I2C",
                                "address": "0x3C"})
            if "buzzer" in kind or "piezo" in kind:
                outputs.append({"type": "Buzzer", "model": "Piezo", "interface": "PWM",
                                "pin": claim("BUZZER", "OUTPUT", "Piezo buzzer PWM")})
            if "relay" in kind:
                outputs.append({"type": "Relay", "interface": "GPIO",
                                "pin": claim("RELAY", "OUTPUT", "Relay control"),
                                "count": output.count})
        for entry in spec.inputs:
            if "button" in entry.type.lower():
                for i in range(entry.count):
                    claim(f"BUTTON_{i + 1}", "INPUT_PULLUP", f"User button {i + 1}")

    board = project.board
    if board and board.net_list:
        pins = [
            {"name": n.net, "gpio": _gpio_number(n.gpio), "mode": "BOARD",
             "description": f"From {n.block_slug}"}
            for n in board.net_list if n.gpio
        ]

    power = spec.power.source if spec else "USB-C"
    return {
        "project_name": spec.name if spec else "",
        "project_description": project.description,
        "board": "esp32-c6-devkitc-1",
        "i2c": {"sda": I2C_SDA_GPIO, "scl": I2C_SCL_GPIO},
        "led_builtin": LED_BUILTIN_GPIO,
        "sensors": sensors,
        "outputs": outputs,
        "pins": pins,
        "power_source": power,
        "features": list(spec.features) if spec else [],
        "enable_wifi": options.get("enable_wifi", True),
        "enable_ble": options.get("enable_ble", False),
        "enable_ota": options.get("enable_ota", False),
        "enable_deep_sleep": options.get("enable_deep_sleep", False),
    }


def firmware_messages(request: dict, feedback: str | None = None) -> list[ConversationMessage]:
    prompt = ("Write the firmware for this device:\n"
              + json.dumps(request, indent=2, default=str))
    if feedback:
        prompt += f"\n\n## PREVIOUS REVIEW FEEDBACK - Address these issues:\n{feedback}"
    return [
        ConversationMessage.system(FIRMWARE_SYSTEM_PROMPT),
        ConversationMessage.user(prompt),
    ]


# ── Review ─────────────────────────────────────────────────────────

REVIEW_SYSTEM_PROMPT = """\
You review generated hardware artifacts against their specification.
Score 0-100. Verdict is "accept" (score >= 85, no errors), "revise", or
"reject". List concrete issues with severity error, warning or info.

Respond with JSON only:
{"score": 0, "verdict": "revise",
 "issues": [{"severity": "error", "description": "..."}],
 "positives": ["..."], "summary": "..."%s}"""


def enclosure_review_messages(project: ProjectSpec) -> list[ConversationMessage]:
    spec = project.final_spec
    size = project.board.board_size if project.board else None
    context = {
        "spec": spec.model_dump(mode="json") if spec else None,
        "board_size": size.model_dump() if size else None,
    }
    code = project.enclosure.open_scad_code if project.enclosure else ""
    return [
        ConversationMessage.system(REVIEW_SYSTEM_PROMPT % ""),
        ConversationMessage.user(
            "Review this enclosure.\n\nContext:\n"
            + json.dumps(context, indent=2)
            + f"\n\nOpenSCAD:\n```openscad\n{code}\n```"
        ),
    ]


def firmware_review_messages(project: ProjectSpec) -> list[ConversationMessage]:
    spec = project.final_spec
    board = project.board
    context = {
        "spec": spec.model_dump(mode="json") if spec else None,
        "placed_blocks": [b.block_slug for b in board.placed_blocks] if board else [],
        "net_list": [n.model_dump() for n in board.net_list] if board else [],
    }
    files = project.firmware.files if project.firmware else []
    listing = "\n\n".join(f"// {f.path}\n{f.content}" for f in files)
    return [
        ConversationMessage.system(REVIEW_SYSTEM_PROMPT % ', "missing_features": ["..."]'),
        ConversationMessage.user(
            "Review this firmware.\n\nContext:\n"
            + json.dumps(context, indent=2)
            + f"\n\nFiles:\n{listing}"
        ),
    ]
