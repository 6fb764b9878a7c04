"""
Tabular file I/O.

One reader and one writer keyed on file suffix, shared by the ingestion
adapters, the exporter and the CLI.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd


logger = logging.getLogger(__name__)

EXCEL_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd"}
WRITABLE_SUFFIXES = (".csv", ".xlsx")

# Keys under which JSON exports commonly nest their row list
JSON_LIST_KEYS = ("items", "data", "products", "orders")


def excel_engine_for(suffix: str) -> str:
    """
    pandas engine for an Excel suffix: openpyxl for .xlsx, xlrd for legacy .xls.

    Raises:
        ValueError: If the suffix is not an Excel format.
    """
    engine = EXCEL_ENGINES.get(suffix.lower())
    if engine is None:
        raise ValueError(f"Not an Excel format: {suffix}")
    return engine


def json_to_records(data: Any) -> List[Dict[str, Any]]:
    """
    Normalize parsed JSON into a list of row dicts.

    Accepts a top-level list, an object holding the list under one of
    items/data/products/orders, or a single object (one row).
    """
    if isinstance(data, list):
        return data

    if isinstance(data, dict):
        for key in JSON_LIST_KEYS:
            if isinstance(data.get(key), list):
                return data[key]
        return [data]

    raise ValueError(f"Unsupported JSON structure: {type(data).__name__}")


def read_table(file_path: Path, **kwargs) -> pd.DataFrame:
    """
    Read a CSV, Excel or JSON file into a DataFrame.

    Args:
        file_path: File to read; the suffix picks the reader.
        **kwargs: Passed to pd.read_csv / pd.read_excel (not used for JSON).

    Returns:
        pd.DataFrame: One row per record.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the suffix is unsupported or the JSON holds no rows.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = path.suffix.lower()
    logger.debug(f"Reading {suffix or 'untyped'} file: {path}")

    if suffix == ".csv":
        return pd.read_csv(path, **kwargs)
    if suffix in EXCEL_ENGINES:
        return pd.read_excel(path, engine=EXCEL_ENGINES[suffix], **kwargs)
    if suffix == ".json":
        with open(path, encoding="utf-8") as f:
            return pd.DataFrame(json_to_records(json.load(f)))

    raise ValueError(f"Unsupported file format: {suffix}")


def write_table(df: pd.DataFrame, file_path: Path, sheet_name: str = "Sheet1") -> Path:
    """
    Write a DataFrame as .csv or .xlsx, creating parent directories.

    Raises:
        ValueError: If the suffix is neither .csv nor .xlsx.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix not in WRITABLE_SUFFIXES:
        raise ValueError(f"Unsupported output format: {suffix}. Expected .xlsx or .csv")

    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".csv":
        df.to_csv(path, index=False)
    else:
        df.to_excel(path, sheet_name=sheet_name, index=False, engine="openpyxl")

    logger.debug(f"Wrote {len(df)} rows to {path}")
    return path
