"""
Mapping file loader.

Reads SKU -> MSKU mapping files (Excel/CSV) into Mapping records and scans
them for duplicate (sku, marketplace) keys before they reach the engine.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from msku_resolver.exceptions import FileValidationError
from msku_resolver.ingestion.sku_extractor import clean_value
from msku_resolver.resolution.resolution_engine import Mapping, mapping_key
from msku_resolver.utils.io_helpers import read_table


logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["sku", "msku", "marketplace"]
MAPPING_SUFFIXES = (".xlsx", ".xls", ".csv")

COLUMN_VARIANTS = {
    "sku": ["sku", "seller_sku", "seller sku", "marketplace_sku"],
    "msku": ["msku", "master_sku", "master sku", "mastersku"],
    "marketplace": ["marketplace", "channel", "platform", "store"],
}


@dataclass
class DuplicateScanResult:
    """
    Result of scanning a mapping file for duplicate keys.

    Attributes:
        has_duplicates: True if duplicates were found.
        duplicate_keys: Keys ("sku:marketplace", lowercase) that appear more than once.
        duplicate_details: Dict mapping key -> spreadsheet row numbers where it appears.
        total_rows: Total number of rows in the file.
        unique_keys: Number of unique keys.
    """
    has_duplicates: bool = False
    duplicate_keys: List[str] = field(default_factory=list)
    duplicate_details: Dict[str, List[int]] = field(default_factory=dict)
    total_rows: int = 0
    unique_keys: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "has_duplicates": self.has_duplicates,
            "duplicate_keys": self.duplicate_keys,
            "duplicate_count": len(self.duplicate_keys),
            "duplicate_details": self.duplicate_details,
            "total_rows": self.total_rows,
            "unique_keys": self.unique_keys,
        }


def normalize_mapping_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename header variants to sku / msku / marketplace.

    Raises:
        FileValidationError: If a required column is missing.
    """
    column_map = {}
    for col in df.columns:
        col_lower = str(col).lower().strip()
        for target, variants in COLUMN_VARIANTS.items():
            if col_lower in variants and target not in column_map.values():
                column_map[col] = target
                break

    if column_map:
        df = df.rename(columns=column_map)

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise FileValidationError(
            f"Mapping file missing required columns: {missing}. "
            f"Available columns: {list(df.columns)}",
            missing_columns=missing,
        )

    return df


def load_mapping_file(file_path: Path) -> pd.DataFrame:
    """
    Load a mapping file with normalized column names.

    Supports Excel (.xlsx, .xls) and CSV (.csv) formats.

    Args:
        file_path: Path to the mapping file.

    Returns:
        pd.DataFrame: Mapping rows with sku, msku and marketplace columns.

    Raises:
        FileNotFoundError: If the file does not exist.
        FileValidationError: If the format is unsupported or columns are missing.
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Mapping file not found: {file_path}")

    logger.info(f"Loading mapping file from: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix not in MAPPING_SUFFIXES:
        raise FileValidationError(f"Unsupported mapping file format: {suffix}", filename=file_path.name)

    return normalize_mapping_columns(read_table(file_path, dtype=str))


def scan_duplicates(df: pd.DataFrame) -> DuplicateScanResult:
    """
    Scan normalized mapping rows for duplicate (sku, marketplace) keys.

    Args:
        df: DataFrame with sku and marketplace columns.

    Returns:
        DuplicateScanResult: Scan results with duplicate information.
    """
    # Incomplete rows are skipped, as in mappings_from_dataframe
    keys = pd.Series(
        {
            index: mapping_key(sku, marketplace)
            for index, sku, marketplace in zip(
                df.index, df["sku"].map(clean_value), df["marketplace"].map(clean_value)
            )
            if sku and marketplace
        },
        dtype=object,
    )
    key_counts = keys.value_counts()
    duplicate_keys = key_counts[key_counts > 1].index.tolist()

    duplicate_details = {}
    for key in duplicate_keys:
        rows = keys[keys == key].index.tolist()
        duplicate_details[key] = [r + 2 for r in rows]  # Excel row numbers

    result = DuplicateScanResult(
        has_duplicates=len(duplicate_keys) > 0,
        duplicate_keys=duplicate_keys,
        duplicate_details=duplicate_details,
        total_rows=len(df),
        unique_keys=len(key_counts),
    )

    if result.has_duplicates:
        logger.warning(f"Duplicate mapping keys detected in mapping file: {duplicate_keys}")

    return result


def mappings_from_dataframe(df: pd.DataFrame) -> List[Mapping]:
    """
    Build Mapping records from normalized rows, skipping incomplete rows.

    Args:
        df: DataFrame with sku, msku and marketplace columns.

    Returns:
        List[Mapping]: One record per complete row, in file order.
    """
    mappings = []
    skipped = 0

    for _, row in df.iterrows():
        sku = clean_value(row.get("sku"))
        msku = clean_value(row.get("msku"))
        marketplace = clean_value(row.get("marketplace"))
        if not (sku and msku and marketplace):
            skipped += 1
            continue
        mappings.append(Mapping(sku=sku, msku=msku, marketplace=marketplace))

    if skipped:
        logger.warning(f"Skipped {skipped} incomplete mapping rows")

    return mappings


def load_mappings(file_path: Path) -> List[Mapping]:
    """
    Convenience function to load a mapping file as Mapping records.

    Args:
        file_path: Path to the mapping file.

    Returns:
        List[Mapping]: Mapping records; duplicates are left for the engine to resolve.
    """
    df = load_mapping_file(file_path)
    scan_duplicates(df)
    mappings = mappings_from_dataframe(df)
    logger.info(f"Loaded {len(mappings)} mappings from file")
    return mappings
