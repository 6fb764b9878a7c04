"""
Tests for the mapping file loader.
"""

import pytest
import pandas as pd
from pathlib import Path

from msku_resolver.exceptions import FileValidationError
from msku_resolver.ingestion.mapping_loader import (
    load_mapping_file,
    load_mappings,
    mappings_from_dataframe,
    normalize_mapping_columns,
    scan_duplicates,
)
from msku_resolver.resolution.resolution_engine import Mapping


@pytest.fixture
def mapping_csv(tmp_path: Path) -> Path:
    """Mapping CSV with header variants, a duplicate key and a blank row."""
    path = tmp_path / "mappings.csv"
    path.write_text(
        "Seller SKU,Master SKU,Channel\n"
        "GLD,APPLE-001,Shopify\n"
        "gld,APPLE-009,SHOPIFY\n"
        "RED-A,APPLE-002,Shopify\n"
        ",WIDGET-001,Amazon\n",
        encoding="utf-8",
    )
    return path


class TestNormalizeColumns:
    """Tests for normalize_mapping_columns."""

    def test_header_variants(self) -> None:
        df = pd.DataFrame(columns=["Seller SKU", "Master SKU", "Channel"])
        assert list(normalize_mapping_columns(df).columns) == ["sku", "msku", "marketplace"]

    def test_missing_columns(self) -> None:
        df = pd.DataFrame(columns=["sku", "msku"])

        with pytest.raises(FileValidationError) as exc_info:
            normalize_mapping_columns(df)
        assert exc_info.value.details["missing_columns"] == ["marketplace"]


class TestScanDuplicates:
    """Tests for scan_duplicates."""

    def test_case_insensitive_duplicates(self, mapping_csv: Path) -> None:
        result = scan_duplicates(load_mapping_file(mapping_csv))

        assert result.has_duplicates
        assert result.duplicate_keys == ["gld:shopify"]
        assert result.duplicate_details == {"gld:shopify": [2, 3]}
        assert result.total_rows == 4
        assert result.unique_keys == 2
        assert result.to_dict()["duplicate_count"] == 1

    def test_no_duplicates(self) -> None:
        df = pd.DataFrame([
            {"sku": "GLD", "msku": "APPLE-001", "marketplace": "Shopify"},
            {"sku": "GLD", "msku": "APPLE-001", "marketplace": "Amazon"},
        ])
        result = scan_duplicates(df)
        assert not result.has_duplicates
        assert result.unique_keys == 2

    def test_incomplete_rows_have_no_key(self) -> None:
        df = pd.DataFrame([
            {"sku": "GLD", "msku": "APPLE-001", "marketplace": "Shopify"},
            {"sku": None, "msku": "APPLE-001", "marketplace": "Shopify"},
            {"sku": "  ", "msku": "APPLE-001", "marketplace": "Shopify"},
            {"sku": "GLD", "msku": "APPLE-001", "marketplace": float("nan")},
        ])
        result = scan_duplicates(df)

        assert result.total_rows == 4
        assert result.unique_keys == 1
        assert not result.has_duplicates


class TestLoadMappings:
    """Tests for load_mapping_file / load_mappings."""

    def test_load_csv(self, mapping_csv: Path) -> None:
        """Test rows become Mapping records in file order, blank rows skipped."""
        mappings = load_mappings(mapping_csv)

        assert mappings == [
            Mapping("GLD", "APPLE-001", "Shopify"),
            Mapping("gld", "APPLE-009", "SHOPIFY"),
            Mapping("RED-A", "APPLE-002", "Shopify"),
        ]

    def test_load_excel(self, tmp_path: Path) -> None:
        path = tmp_path / "mappings.xlsx"
        pd.DataFrame([{"sku": "GLD", "msku": "APPLE-001", "marketplace": "Shopify"}]).to_excel(
            path, index=False
        )

        assert load_mappings(path) == [Mapping("GLD", "APPLE-001", "Shopify")]

    def test_values_are_stripped(self) -> None:
        df = pd.DataFrame([{"sku": " GLD ", "msku": "APPLE-001 ", "marketplace": " Shopify"}])
        assert mappings_from_dataframe(df) == [Mapping("GLD", "APPLE-001", "Shopify")]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_mapping_file(tmp_path / "missing.xlsx")

    def test_unsupported_format(self, tmp_path: Path) -> None:
        path = tmp_path / "mappings.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(FileValidationError, match="Unsupported mapping file format"):
            load_mapping_file(path)
