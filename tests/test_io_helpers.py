"""
Tests for tabular file I/O helpers.
"""

import json

import pytest
import pandas as pd
from pathlib import Path

from msku_resolver.utils.io_helpers import excel_engine_for, json_to_records, read_table, write_table


class TestJsonToRecords:
    def test_list(self) -> None:
        assert json_to_records([{"sku": "A"}]) == [{"sku": "A"}]

    def test_nested_list(self) -> None:
        assert json_to_records({"orders": [{"sku": "A"}], "total": 1}) == [{"sku": "A"}]

    def test_single_object(self) -> None:
        assert json_to_records({"sku": "A"}) == [{"sku": "A"}]

    def test_scalar_rejected(self) -> None:
        with pytest.raises(ValueError):
            json_to_records("sku")


def test_excel_engine_for() -> None:
    assert excel_engine_for(".XLSX") == "openpyxl"
    assert excel_engine_for(".xls") == "xlrd"
    with pytest.raises(ValueError):
        excel_engine_for(".csv")


class TestReadTable:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_table(tmp_path / "missing.csv")

    def test_unsupported_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("sku\nA\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Unsupported file format"):
            read_table(path)

    def test_csv_kwargs(self, tmp_path: Path) -> None:
        path = tmp_path / "skus.csv"
        path.write_text("sku,qty\n007,2\n", encoding="utf-8")

        df = read_table(path, dtype=str)
        assert df.loc[0, "sku"] == "007"

    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "feed.json"
        path.write_text(json.dumps({"items": [{"sku": "A"}, {"sku": "B"}]}), encoding="utf-8")

        assert read_table(path)["sku"].tolist() == ["A", "B"]


class TestWriteTable:
    def test_xlsx_creates_parent(self, tmp_path: Path) -> None:
        df = pd.DataFrame({"sku": ["A", "B"]})
        path = write_table(df, tmp_path / "out" / "rows.xlsx", sheet_name="Rows")

        assert path.exists()
        assert pd.read_excel(path, sheet_name="Rows")["sku"].tolist() == ["A", "B"]

    def test_csv(self, tmp_path: Path) -> None:
        path = write_table(pd.DataFrame({"sku": ["A"]}), tmp_path / "rows.csv")
        assert path.read_text(encoding="utf-8").splitlines() == ["sku", "A"]

    def test_rejects_other_suffix(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Unsupported output format"):
            write_table(pd.DataFrame(), tmp_path / "rows.xls")
