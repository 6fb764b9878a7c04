"""
Tests for the command line interface.
"""

import pytest
import pandas as pd
from pathlib import Path

from msku_resolver.main import build_parser, main


@pytest.fixture(autouse=True)
def keep_test_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Leave pytest's log handlers in place."""
    monkeypatch.setattr("msku_resolver.main.setup_logging", lambda **kwargs: None)


@pytest.fixture
def mapping_file(tmp_path: Path) -> Path:
    path = tmp_path / "mappings.csv"
    pd.DataFrame([
        {"sku": "GOLDEN-APPLE", "msku": "APPLE-001", "marketplace": "Amazon"},
        {"sku": "GLD", "msku": "APPLE-001", "marketplace": "Shopify"},
    ]).to_csv(path, index=False)
    return path


@pytest.fixture
def base_args(tmp_path: Path, mapping_file: Path) -> list:
    """Arguments pointing at the temp mapping file and a missing config."""
    return ["-m", str(mapping_file), "-c", str(tmp_path / "none.yaml")]


class TestParseArgs:
    """Tests for the argument parser."""

    def test_defaults(self) -> None:
        args = build_parser().parse_args([])

        assert args.mappings is None
        assert args.config is None
        assert args.dry_run is False
        assert args.sales is False

    def test_paths(self) -> None:
        args = build_parser().parse_args(["-m", "maps.xlsx", "-i", "orders.csv", "-o", "out.csv"])

        assert args.mappings == Path("maps.xlsx")
        assert args.input == Path("orders.csv")
        assert args.output == Path("out.csv")


class TestSingleLookup:
    """Tests for --sku/--marketplace."""

    def test_exact(self, base_args: list, capsys) -> None:
        exit_code = main(base_args + ["--sku", "gld", "--marketplace", "shopify"])

        assert exit_code == 0
        assert "APPLE-001 [exact]" in capsys.readouterr().out

    def test_pattern(self, base_args: list, capsys) -> None:
        exit_code = main(base_args + ["--sku", "REDAPPLE", "--marketplace", "Amazon"])

        assert exit_code == 0
        assert "pattern: product-name" in capsys.readouterr().out

    def test_no_match(self, base_args: list, capsys) -> None:
        exit_code = main(base_args + ["--sku", "NOPE", "--marketplace", "Amazon"])

        assert exit_code == 1
        assert "No mapping found for SKU NOPE in Amazon" in capsys.readouterr().out

    def test_missing_marketplace(self, base_args: list) -> None:
        assert main(base_args + ["--sku", "GLD"]) == 1


class TestFileRun:
    """Tests for --input runs."""

    @pytest.fixture
    def orders_csv(self, tmp_path: Path) -> Path:
        path = tmp_path / "orders.csv"
        path.write_text("sku,marketplace\nGLD,Shopify\nNOPE,Amazon\n", encoding="utf-8")
        return path

    def test_writes_report(self, base_args: list, orders_csv: Path, tmp_path: Path, capsys) -> None:
        output = tmp_path / "report.csv"

        exit_code = main(base_args + ["-i", str(orders_csv), "-o", str(output)])

        assert exit_code == 0
        assert output.exists()
        assert len(pd.read_csv(output)) == 2
        assert "Matched: 1" in capsys.readouterr().out

    def test_dry_run(self, base_args: list, orders_csv: Path, tmp_path: Path, capsys) -> None:
        output = tmp_path / "report.csv"

        exit_code = main(base_args + ["-i", str(orders_csv), "-o", str(output), "--dry-run"])

        assert exit_code == 0
        assert not output.exists()
        assert "DRY RUN" in capsys.readouterr().out

    def test_sales(self, base_args: list, tmp_path: Path, capsys) -> None:
        sales = tmp_path / "sales.csv"
        sales.write_text("sku,marketplace,quantity,price\nGLD,Shopify,3,2.5\n", encoding="utf-8")

        exit_code = main(base_args + ["-i", str(sales), "--sales"])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "SALES SUMMARY" in out
        assert "Revenue: 7.50" in out

    def test_input_from_configured_dir(
        self, mapping_file: Path, orders_csv: Path, tmp_path: Path, monkeypatch, capsys
    ) -> None:
        """Test a bare input name is found under paths.input_dir."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(f"paths:\n  input_dir: {tmp_path.as_posix()}\n", encoding="utf-8")
        workdir = tmp_path / "work"
        workdir.mkdir()
        monkeypatch.chdir(workdir)

        exit_code = main(["-m", str(mapping_file), "-c", str(config_file), "-i", "orders.csv", "--dry-run"])

        assert exit_code == 0
        assert "Processed: 2" in capsys.readouterr().out

    def test_missing_input(self, base_args: list, tmp_path: Path) -> None:
        assert main(base_args + ["-i", str(tmp_path / "missing.csv")]) == 1

    def test_unsupported_input(self, base_args: list, tmp_path: Path) -> None:
        path = tmp_path / "orders.txt"
        path.write_text("GLD", encoding="utf-8")

        assert main(base_args + ["-i", str(path)]) == 1


class TestErrors:
    """Tests for argument and mapping errors."""

    def test_missing_mapping_file(self, tmp_path: Path, capsys) -> None:
        exit_code = main(["-m", str(tmp_path / "missing.xlsx"), "-c", str(tmp_path / "none.yaml"), "--sku", "X"])

        assert exit_code == 1
        assert "Mapping file not found" in capsys.readouterr().out

    def test_nothing_to_do(self, base_args: list) -> None:
        assert main(base_args) == 1
