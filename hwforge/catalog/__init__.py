"""Block catalog — load, validate, query, and serialize catalog/*.json."""

from .models import CATEGORIES, Block, BlockTap, ValidationError, CatalogResult
from .loader import load_catalog, get_block, parse_block, CATALOG_DIR
from .serialization import catalog_to_dict, block_to_dict, catalog_summary

__all__ = [
    # Models
    "CATEGORIES", "Block", "BlockTap", "ValidationError", "CatalogResult",
    # Loader
    "load_catalog", "get_block", "parse_block", "CATALOG_DIR",
    # Serialization
    "catalog_to_dict", "block_to_dict", "catalog_summary",
]
