"""Catalog dataclasses — typed representations of catalog/*.json blocks."""

from __future__ import annotations

from dataclasses import dataclass, field


CATEGORIES = ("mcu", "power", "sensor", "output", "connector", "utility")


@dataclass
class BlockTap:
    net: str                            # bus net name, e.g. "I2C0_SDA"
    gpio: str | None = None             # MCU pin the net lands on, e.g. "GPIO6"


@dataclass
class Block:
    slug: str
    name: str
    category: str                       # one of CATEGORIES
    description: str
    width_units: int                    # footprint in 12.7 mm grid units
    height_units: int
    taps: list[BlockTap] = field(default_factory=list)
    i2c_addresses: list[str] = field(default_factory=list)
    current_max_ma: float | None = None
    source_file: str = ""               # path of the JSON file (for error reporting)


@dataclass
class ValidationError:
    slug: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"[{self.slug}] {self.field}: {self.message}"


@dataclass
class CatalogResult:
    """Result of loading the catalog — blocks + any validation errors."""
    blocks: list[Block]
    errors: list[ValidationError]

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0
