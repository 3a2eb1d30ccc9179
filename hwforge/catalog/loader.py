"""Catalog loader — reads catalog/*.json files, parses and validates them."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from hwforge.errors import CatalogError

from .models import CATEGORIES, Block, BlockTap, CatalogResult, ValidationError

log = logging.getLogger("hwforge.catalog")

CATALOG_DIR = Path(__file__).resolve().parent.parent.parent / "catalog"

_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_GPIO_RE = re.compile(r"^GPIO\d+$")
_I2C_RE = re.compile(r"^0x[0-9a-fA-F]{2}$")


# ── Validation ─────────────────────────────────────────────────────

def _validate_block(block: Block) -> list[ValidationError]:
    """Run all validation checks on a single block."""
    errs: list[ValidationError] = []
    slug = block.slug

    if not _SLUG_RE.match(slug):
        errs.append(ValidationError(slug, "slug", "Must be lowercase words joined by '-'"))

    if block.category not in CATEGORIES:
        errs.append(ValidationError(slug, "category",
                                    f"Unknown category '{block.category}'"))

    if block.width_units <= 0:
        errs.append(ValidationError(slug, "width_units", "Must be > 0"))
    if block.height_units <= 0:
        errs.append(ValidationError(slug, "height_units", "Must be > 0"))

    seen: set[str] = set()
    for tap in block.taps:
        if tap.net in seen:
            errs.append(ValidationError(slug, f"taps.{tap.net}", "Duplicate net"))
        seen.add(tap.net)
        if tap.gpio is not None and not _GPIO_RE.match(tap.gpio):
            errs.append(ValidationError(slug, f"taps.{tap.net}.gpio",
                                        f"Expected GPIO<n>, got '{tap.gpio}'"))

    for addr in block.i2c_addresses:
        if not _I2C_RE.match(addr):
            errs.append(ValidationError(slug, "i2c_addresses",
                                        f"Expected 0xNN, got '{addr}'"))

    return errs


# ── Parsing ────────────────────────────────────────────────────────

def _parse_tap(data: dict) -> BlockTap:
    return BlockTap(net=data["net"], gpio=data.get("gpio"))


def parse_block(data: dict, source_file: str = "") -> Block:
    """Build a Block from its JSON form. Raises KeyError/TypeError/ValueError."""
    return Block(
        slug=data["slug"],
        name=data["name"],
        category=data["category"],
        description=data.get("description", ""),
        width_units=int(data["width_units"]),
        height_units=int(data["height_units"]),
        taps=[_parse_tap(t) for t in data.get("taps", [])],
        i2c_addresses=list(data.get("i2c_addresses") or []),
        current_max_ma=data.get("current_max_ma"),
        source_file=source_file,
    )


# ── Public API ─────────────────────────────────────────────────────

def load_catalog(catalog_dir: Path | None = None) -> CatalogResult:
    """Load all catalog/*.json files, parse and validate.

    Blocks that fail to parse are skipped (error recorded). Blocks that
    parse but have validation issues are still included. File order is
    the sorted file-name order, which is the order auto-selection searches.
    """
    d = catalog_dir or CATALOG_DIR
    if not d.is_dir():
        raise CatalogError(f"Catalog directory not found: {d}")

    blocks: list[Block] = []
    errors: list[ValidationError] = []

    json_files = sorted(d.glob("*.json"))
    if not json_files:
        errors.append(ValidationError("_catalog", "files", f"No .json files found in {d}"))
        return CatalogResult(blocks=blocks, errors=errors)

    for path in json_files:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            errors.append(ValidationError(path.stem, "json", f"Parse error: {exc}"))
            continue
        except OSError as exc:
            errors.append(ValidationError(path.stem, "file", f"Read error: {exc}"))
            continue

        try:
            block = parse_block(raw, source_file=str(path))
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(ValidationError(
                raw.get("slug", path.stem), "parse", f"Missing/invalid field: {exc}"))
            continue

        errors.extend(_validate_block(block))
        blocks.append(block)

    slug_counts: dict[str, int] = {}
    for block in blocks:
        slug_counts[block.slug] = slug_counts.get(block.slug, 0) + 1
    for slug, count in slug_counts.items():
        if count > 1:
            errors.append(ValidationError(slug, "slug", f"Duplicate block slug (appears {count} times)"))

    if errors:
        log.warning("Catalog loaded with %d error(s)", len(errors))
    log.debug("Loaded %d blocks from %s", len(blocks), d)
    return CatalogResult(blocks=blocks, errors=errors)


def get_block(catalog: list[Block] | CatalogResult, slug: str) -> Block | None:
    """Look up a block by slug. Returns None if not found."""
    blocks = catalog.blocks if isinstance(catalog, CatalogResult) else catalog
    for b in blocks:
        if b.slug == slug:
            return b
    return None
