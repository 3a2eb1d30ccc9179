"""Deterministic design logic: block selection, cross-stage checks, extraction."""

from .selection import (
    BlockSelection, auto_select_blocks, validate_block_selection,
    compute_board_size, derive_net_list, find_block, GRID_UNIT_MM,
)
from .validation import (
    ValidationIssue, ValidationSuggestion, ValidationResult, EnclosureDimensions,
    CHECK_TYPES, validate_cross_stage, parse_enclosure_dimensions,
    generate_validation_report,
)
from .extraction import (
    extract_json_object, extract_code_block,
    extract_enclosure_dimensions, extract_enclosure_features,
)

__all__ = [
    # Selection
    "BlockSelection", "auto_select_blocks", "validate_block_selection",
    "compute_board_size", "derive_net_list", "find_block", "GRID_UNIT_MM",
    # Validation
    "ValidationIssue", "ValidationSuggestion", "ValidationResult", "EnclosureDimensions",
    "CHECK_TYPES", "validate_cross_stage", "parse_enclosure_dimensions",
    "generate_validation_report",
    # Extraction
    "extract_json_object", "extract_code_block",
    "extract_enclosure_dimensions", "extract_enclosure_features",
]
