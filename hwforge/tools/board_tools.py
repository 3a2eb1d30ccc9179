"""Board stage tool: select and place circuit blocks on the grid."""

from __future__ import annotations

import logging

from hwforge.agent.context import ToolContext
from hwforge.design import (
    auto_select_blocks, compute_board_size, derive_net_list, validate_block_selection,
)
from hwforge.project import BoardLayout, PlacedBlock
from hwforge.project.patches import board_patch

log = logging.getLogger("hwforge.tools.board")


def _parse_placements(raw: list) -> list[PlacedBlock]:
    """Placements from the model, in snake_case or camelCase."""
    placed = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        slug = entry.get("block_slug") or entry.get("blockSlug") or ""
        x = entry.get("grid_x", entry.get("gridX", 0))
        y = entry.get("grid_y", entry.get("gridY", 0))
        placed.append(PlacedBlock(
            block_slug=slug,
            grid_x=int(x or 0),
            grid_y=int(y or 0),
            rotation=int(entry.get("rotation", 0) or 0),
            reason=entry.get("reason", ""),
        ))
    return placed


async def select_board_blocks(ctx: ToolContext, args: dict) -> dict:
    raw = args.get("blocks") or []
    reasoning = args.get("reasoning", "")
    final_spec = ctx.project.final_spec

    if raw:
        placed = _parse_placements(raw)
        size = compute_board_size(placed, ctx.catalog)
        known = {b.slug for b in ctx.catalog}
        warnings = [f"Unknown block: {p.block_slug}" for p in placed
                    if p.block_slug not in known]
    elif final_spec is not None:
        selection = auto_select_blocks(final_spec, ctx.catalog)
        placed = selection.blocks
        size = selection.board_size
        warnings = list(selection.warnings)
        reasoning = reasoning or selection.reasoning
    else:
        return {"error": "No final spec available for block selection"}

    warnings += validate_block_selection(placed)
    layout = BoardLayout(
        placed_blocks=placed,
        board_size=size,
        net_list=derive_net_list(placed, ctx.catalog),
        warnings=warnings,
    )
    await ctx.apply(board_patch(layout))
    log.info("Board: %d blocks, %gx%g mm, %d net(s)",
             len(placed), size.width, size.height, len(layout.net_list))

    return {
        "success": True,
        "block_count": len(placed),
        "blocks": [p.block_slug for p in placed],
        "board_size": size.model_dump(),
        "net_count": len(layout.net_list),
        "warnings": warnings,
        "reasoning": reasoning,
    }
