"""
Data ingestion module.

Loads mapping files and turns uploaded CSV/Excel/JSON rows into
{sku, marketplace} candidates for the resolution engine.
"""

from msku_resolver.ingestion.mapping_loader import (
    DuplicateScanResult,
    load_mapping_file,
    load_mappings,
    mappings_from_dataframe,
    scan_duplicates,
)
from msku_resolver.ingestion.sku_extractor import (
    ExtractionResult,
    SkuExtractor,
    detect_file_type,
    find_matching_field,
    load_rows,
    load_rows_from_bytes,
)

__all__ = [
    "SkuExtractor",
    "ExtractionResult",
    "detect_file_type",
    "find_matching_field",
    "load_rows",
    "load_rows_from_bytes",
    "DuplicateScanResult",
    "load_mapping_file",
    "load_mappings",
    "mappings_from_dataframe",
    "scan_duplicates",
]
