"""
SKU candidate extraction from uploaded files.

Loads CSV, Excel and JSON files with pandas and turns their rows into
{sku, marketplace} candidates for bulk resolution, detecting the SKU and
marketplace columns from their names.
"""

import io
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from msku_resolver.exceptions import FileValidationError
from msku_resolver.utils.config_loader import AppConfig, DEFAULT_PRODUCT_FIELDS
from msku_resolver.utils.io_helpers import (
    excel_engine_for,
    json_to_records,
    read_table,
)

logger = logging.getLogger(__name__)

CSV = "csv"
EXCEL = "excel"
JSON = "json"
UNKNOWN = "unknown"

# Alphanumeric code with a hyphen, e.g. WIDGET-BLUE or AB12-X9
SKU_TOKEN_RE = re.compile(r"[A-Z0-9]+-[A-Z0-9]+", re.IGNORECASE)


@dataclass
class ExtractionResult:
    """
    Candidates extracted from one file.

    Attributes:
        file_name: Name of the processed file.
        file_type: csv, excel or json.
        row_count: Rows read from the file.
        candidates: {sku, marketplace, original_data} dicts, rows without a SKU skipped.
    """

    file_name: str
    file_type: str
    row_count: int
    candidates: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.row_count - len(self.candidates)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "file_name": self.file_name,
            "file_type": self.file_type,
            "row_count": self.row_count,
            "candidate_count": len(self.candidates),
            "skipped": self.skipped,
        }


def detect_file_type(file_name: str, content_type: str = "") -> str:
    """
    Detect the type of a file from its extension and MIME type.

    Returns:
        str: "csv", "excel", "json" or "unknown".
    """
    name = (file_name or "").lower()
    mime = (content_type or "").lower()

    if name.endswith(".csv") or mime == "text/csv":
        return CSV
    if name.endswith((".xlsx", ".xls")) or "spreadsheet" in mime or "excel" in mime:
        return EXCEL
    if name.endswith(".json") or mime == "application/json":
        return JSON
    return UNKNOWN


def load_rows(file_path: Path) -> pd.DataFrame:
    """
    Load a CSV, Excel or JSON file into a DataFrame.

    Args:
        file_path: Path to the file.

    Returns:
        pd.DataFrame: One row per record; tabular values are read as strings.

    Raises:
        FileNotFoundError: If the file does not exist.
        FileValidationError: If the type is unsupported or parsing fails.
    """
    file_path = Path(file_path)
    file_type = detect_file_type(file_path.name)

    if file_type == UNKNOWN:
        raise FileValidationError(
            f"Unsupported file type: {file_path.suffix}. Expected .csv, .xlsx, .xls or .json",
            filename=file_path.name,
        )

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        if file_type == JSON:
            return read_table(file_path)
        return read_table(file_path, dtype=str)
    except Exception as e:
        raise FileValidationError(
            f"{file_type.upper()} parsing error: {e}", filename=file_path.name
        ) from e


def load_rows_from_bytes(content: bytes, file_name: str, content_type: str = "") -> pd.DataFrame:
    """
    Load uploaded file content into a DataFrame.

    Args:
        content: Raw file bytes.
        file_name: Original file name (used for type detection).
        content_type: Optional MIME type from the upload.

    Returns:
        pd.DataFrame: One row per record.

    Raises:
        FileValidationError: If the type is unsupported or parsing fails.
    """
    file_type = detect_file_type(file_name, content_type)

    if file_type == UNKNOWN:
        raise FileValidationError(f"Unsupported file type: {content_type or file_name}", filename=file_name)

    try:
        if file_type == CSV:
            return pd.read_csv(io.BytesIO(content), dtype=str, skip_blank_lines=True)
        if file_type == EXCEL:
            suffix = Path(file_name).suffix.lower()
            engine = excel_engine_for(suffix) if suffix in (".xlsx", ".xls") else "openpyxl"
            return pd.read_excel(io.BytesIO(content), engine=engine, dtype=str)
        return pd.DataFrame(json_to_records(json.loads(content.decode("utf-8"))))
    except Exception as e:
        raise FileValidationError(
            f"{file_type.upper()} parsing error: {e}", filename=file_name
        ) from e


def clean_value(value: Any) -> Optional[str]:
    """Convert a cell value to a stripped string, or None when blank/NaN."""
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def find_matching_field(columns: Sequence[str], candidates: Sequence[str]) -> Optional[str]:
    """
    Find the column that best matches a list of candidate names.

    Exact case-insensitive matches win; otherwise the first candidate
    contained in a column name.

    Args:
        columns: Column names from the data.
        candidates: Preferred names, in priority order.

    Returns:
        The original column name, or None.
    """
    columns = [str(c) for c in columns]

    for candidate in candidates:
        for column in columns:
            if column.lower() == candidate.lower():
                return column

    for candidate in candidates:
        for column in columns:
            if candidate.lower() in column.lower():
                return column

    return None


def extract_sku_from_product_info(
    row: Dict[str, Any],
    product_fields: Sequence[str] = DEFAULT_PRODUCT_FIELDS,
) -> Optional[str]:
    """
    Guess a SKU from a row that has no SKU column.

    Looks for a hyphenated code in product/name/title-like columns, then
    falls back to any string longer than 3 characters in an id-like column.

    Args:
        row: One record.
        product_fields: Column name fragments to search for product text.

    Returns:
        The guessed SKU, or None.
    """
    for product_field in product_fields:
        key = next((k for k in row if product_field.lower() in str(k).lower()), None)
        value = clean_value(row.get(key)) if key is not None else None
        if value:
            match = SKU_TOKEN_RE.search(value)
            if match:
                return match.group(0)

    for key, value in row.items():
        if "id" in str(key).lower() and isinstance(value, str) and len(value) > 3:
            return value

    return None


def _json_safe(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        str(k): (None if isinstance(v, float) and pd.isna(v) else v)
        for k, v in row.items()
    }


class SkuExtractor:
    """
    Extracts resolution candidates from tabular data.

    Attributes:
        config: Application configuration (ingestion field heuristics).
        column_mapping: Detected source columns for "sku" and "marketplace".
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.column_mapping: Dict[str, Optional[str]] = {}

    def extract_candidates(self, df: pd.DataFrame) -> List[Dict[str, Any]]:
        """
        Turn rows into {sku, marketplace, original_data} candidates.

        Rows without a detectable SKU are skipped. Rows without a marketplace
        get the configured default marketplace.

        Args:
            df: Rows loaded from a file.

        Returns:
            List of candidate dicts.
        """
        if df is None or df.empty:
            return []

        ingestion = self.config.ingestion
        sku_field = find_matching_field(df.columns, ingestion.sku_fields)
        marketplace_field = find_matching_field(df.columns, ingestion.marketplace_fields)
        self.column_mapping = {"sku": sku_field, "marketplace": marketplace_field}
        logger.debug(f"Detected columns: {self.column_mapping}")

        candidates = []
        for row in df.to_dict(orient="records"):
            sku = clean_value(row.get(sku_field)) if sku_field else None
            if not sku:
                sku = extract_sku_from_product_info(row, ingestion.product_fields)
            if not sku:
                continue

            marketplace = clean_value(row.get(marketplace_field)) if marketplace_field else None
            candidates.append({
                "sku": str(sku),
                "marketplace": marketplace or ingestion.default_marketplace,
                "original_data": _json_safe(row),
            })

        skipped = len(df) - len(candidates)
        if skipped:
            logger.warning(f"Skipped {skipped} rows without a SKU")

        return candidates

    def process_file(self, file_path: Path) -> ExtractionResult:
        """
        Full pipeline for a file on disk: load and extract.

        Raises:
            FileNotFoundError: If the file does not exist.
            FileValidationError: If the file cannot be parsed.
        """
        file_path = Path(file_path)
        logger.info(f"Extracting SKUs from: {file_path}")

        df = load_rows(file_path)
        return ExtractionResult(
            file_name=file_path.name,
            file_type=detect_file_type(file_path.name),
            row_count=len(df),
            candidates=self.extract_candidates(df),
        )

    def process_upload(self, content: bytes, file_name: str, content_type: str = "") -> ExtractionResult:
        """Same as process_file, for uploaded bytes."""
        logger.info(f"Extracting SKUs from upload: {file_name}")

        df = load_rows_from_bytes(content, file_name, content_type)
        return ExtractionResult(
            file_name=file_name,
            file_type=detect_file_type(file_name, content_type),
            row_count=len(df),
            candidates=self.extract_candidates(df),
        )
