"""Catalog serialization — convert dataclasses to JSON-safe dicts."""

from __future__ import annotations

from typing import Any

from .models import Block, CatalogResult


def catalog_to_dict(result: CatalogResult) -> dict:
    """Serialize a CatalogResult to a JSON-safe dict for the web API."""
    return {
        "ok": result.ok,
        "block_count": len(result.blocks),
        "blocks": [block_to_dict(b) for b in result.blocks],
        "errors": [{"slug": e.slug, "field": e.field, "message": e.message}
                   for e in result.errors],
    }


def block_to_dict(b: Block) -> dict:
    """Serialize a Block to a JSON-safe dict."""
    d: dict[str, Any] = {
        "slug": b.slug,
        "name": b.name,
        "category": b.category,
        "description": b.description,
        "width_units": b.width_units,
        "height_units": b.height_units,
        "taps": [
            {"net": t.net, "gpio": t.gpio} if t.gpio else {"net": t.net}
            for t in b.taps
        ],
    }
    if b.i2c_addresses:
        d["i2c_addresses"] = b.i2c_addresses
    if b.current_max_ma is not None:
        d["current_max_ma"] = b.current_max_ma
    return d


def catalog_summary(blocks: list[Block]) -> str:
    """One line per block, used to show the model what is available."""
    lines = []
    for b in blocks:
        lines.append(
            f"- {b.slug} ({b.category}, {b.width_units}x{b.height_units}): {b.description}"
        )
    return "\n".join(lines)
