"""Board block selection — deterministic mapping from a final spec to blocks.

The board is a 12.7 mm grid. Blocks are packed left to right into rows
of ``ROW_WIDTH_UNITS``; a block that would overflow the row starts a new
one below the tallest block placed so far.

Nothing here calls the model: the same spec and catalog always produce
the same selection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from hwforge.catalog import Block, get_block
from hwforge.project import FinalSpec, NetAssignment, PlacedBlock, Size

log = logging.getLogger("hwforge.design.selection")

GRID_UNIT_MM = 12.7
ROW_WIDTH_UNITS = 6
MIN_WIDTH_UNITS = 4
MIN_HEIGHT_UNITS = 3

MCU_PATTERN = "mcu-esp32c6"

# (keywords, block patterns tried in order, reason prefix)
_OUTPUT_RULES: list[tuple[tuple[str, ...], tuple[str, ...], str]] = [
    (("temperature", "humidity", "environmental"), ("sensor-bme280", "sensor-sht40"), "Sensor for"),
    (("acceleration", "motion", "tilt"), ("sensor-lis3dh",), "Sensor for"),
    (("light", "ambient", "lux"), ("sensor-veml7700",), "Sensor for"),
    (("distance", "proximity", "range"), ("sensor-vl53l0x",), "Sensor for"),
    (("pir", "presence"), ("sensor-pir",), "Sensor for"),
    (("led", "neopixel", "ws2812"), ("output-ws2812b",), "Output for"),
    (("display", "oled", "screen"), ("output-oled",), "Display for"),
    (("buzzer", "sound", "beep"), ("output-buzzer",), "Output for"),
    (("relay", "switch"), ("output-relay",), "Output for"),
    (("motor",), ("output-drv8833",), "Output for"),
]


@dataclass
class BlockSelection:
    blocks: list[PlacedBlock]
    board_size: Size
    reasoning: str
    warnings: list[str] = field(default_factory=list)


# ── Helpers ────────────────────────────────────────────────────────

def find_block(catalog: list[Block], pattern: str) -> Block | None:
    """First block in catalog order whose slug contains ``pattern``."""
    needle = pattern.lower()
    for block in catalog:
        if needle in block.slug.lower():
            return block
    return None


def _power_pattern(source: str) -> str | None:
    s = source.lower()
    if "usb" in s:
        return "power-usb"
    if "lipo" in s or "battery" in s or "lithium" in s:
        return "power-lipo"
    if "aa" in s or "aaa" in s:
        return "power-boost"
    if "cr2032" in s or "coin" in s:
        return "power-cr2032"
    return None


def board_size_for(width_units: int, height_units: int) -> Size:
    """Board size in mm for a grid extent, with the minimum footprint applied."""
    return Size(
        width=round(max(width_units, MIN_WIDTH_UNITS) * GRID_UNIT_MM, 2),
        height=round(max(height_units, MIN_HEIGHT_UNITS) * GRID_UNIT_MM, 2),
    )


class _RowPacker:
    """Row-based packing state for one selection run."""

    def __init__(self) -> None:
        self.next_x = 0
        self.next_y = 0
        self.max_width = 0
        self.max_height = 0
        self.placed: list[PlacedBlock] = []

    def place(self, block: Block, reason: str) -> None:
        if self.next_x + block.width_units > ROW_WIDTH_UNITS:
            self.next_x = 0
            self.next_y = self.max_height

        self.placed.append(PlacedBlock(
            block_slug=block.slug,
            grid_x=self.next_x,
            grid_y=self.next_y,
            rotation=0,
            reason=reason,
        ))

        self.next_x += block.width_units
        self.max_width = max(self.max_width, self.next_x)
        self.max_height = max(self.max_height, self.next_y + block.height_units)


# ── Public API ─────────────────────────────────────────────────────

def auto_select_blocks(final_spec: FinalSpec, catalog: list[Block]) -> BlockSelection:
    """Pick and pack blocks for ``final_spec`` from ``catalog``.

    Every rule that matches the spec but finds no catalog block adds a
    warning instead of failing.
    """
    packer = _RowPacker()
    warnings: list[str] = []

    def add(patterns: tuple[str, ...], reason: str) -> None:
        for pattern in patterns:
            block = find_block(catalog, pattern)
            if block is not None:
                packer.place(block, reason)
                return
        warnings.append(f"No block matching {' or '.join(patterns)} ({reason})")

    # 1. MCU
    mcu = find_block(catalog, MCU_PATTERN)
    if mcu is not None:
        packer.place(mcu, "Required MCU")
    else:
        warnings.append("ESP32-C6 MCU block not found")

    # 2. Power, first matching rule wins
    source = final_spec.power.source
    pattern = _power_pattern(source)
    if pattern is None:
        add(("power-usb",), "Default USB-C power")
    else:
        add((pattern,), f"Power source: {source}")

    # 3. Outputs, every rule tested independently
    for output in final_spec.outputs:
        kind = output.type.lower()
        for keywords, patterns, prefix in _OUTPUT_RULES:
            if any(k in kind for k in keywords):
                add(patterns, f"{prefix} {output.type}")

    # 4. Inputs
    for entry in final_spec.inputs:
        kind = entry.type.lower()
        if "button" in kind:
            pattern = "connector-buttons-2" if entry.count <= 2 else "connector-buttons-4"
            add((pattern,), f"Input for {entry.type}")
        if "encoder" in kind or "dial" in kind or "knob" in kind:
            add(("connector-encoder",), f"Input for {entry.type}")

    size = board_size_for(packer.max_width, packer.max_height)
    for w in warnings:
        log.warning("Auto-select: %s", w)

    return BlockSelection(
        blocks=packer.placed,
        board_size=size,
        reasoning=(
            f"Auto-selected {len(packer.placed)} blocks based on spec requirements. "
            f"Board size: {size.width:g}x{size.height:g}mm"
        ),
        warnings=warnings,
    )


def validate_block_selection(blocks: list[PlacedBlock]) -> list[str]:
    """Structural problems with a selection: missing MCU/power, stacked blocks."""
    errors: list[str] = []

    if not any("mcu" in b.block_slug for b in blocks):
        errors.append("Missing MCU block")
    if not any("power" in b.block_slug for b in blocks):
        errors.append("Missing power block")

    for i, a in enumerate(blocks):
        for b in blocks[i + 1:]:
            if a.grid_x == b.grid_x and a.grid_y == b.grid_y:
                errors.append(
                    f"Blocks {a.block_slug} and {b.block_slug} overlap at ({a.grid_x}, {a.grid_y})"
                )
    return errors


def compute_board_size(blocks: list[PlacedBlock], catalog: list[Block]) -> Size:
    """Board size from the placed blocks' catalog footprints.

    Blocks missing from the catalog count as 1x1.
    """
    width = height = 0
    for placed in blocks:
        block = get_block(catalog, placed.block_slug)
        w, h = (block.width_units, block.height_units) if block else (1, 1)
        if placed.rotation in (90, 270):
            w, h = h, w
        width = max(width, placed.grid_x + w)
        height = max(height, placed.grid_y + h)
    return board_size_for(width, height)


def derive_net_list(blocks: list[PlacedBlock], catalog: list[Block]) -> list[NetAssignment]:
    """GPIO-carrying nets of the placed blocks, first block per net wins."""
    nets: dict[str, NetAssignment] = {}
    for placed in blocks:
        block = get_block(catalog, placed.block_slug)
        if block is None:
            continue
        for tap in block.taps:
            if tap.gpio and tap.net not in nets:
                nets[tap.net] = NetAssignment(
                    net=tap.net, gpio=tap.gpio, block_slug=block.slug)
    return list(nets.values())
