"""
Resolution report exporter.

Writes bulk resolution reports to Excel (with a summary sheet) or CSV.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from msku_resolver.resolution.resolution_engine import BulkReport
from msku_resolver.utils.config_loader import AppConfig
from msku_resolver.utils.io_helpers import write_table


logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["sku", "marketplace", "msku", "match_type", "confidence", "error"]


def report_to_dataframe(report: BulkReport) -> pd.DataFrame:
    """
    Flatten a bulk report's details into a DataFrame.

    Args:
        report: Report from a bulk resolution run.

    Returns:
        pd.DataFrame: One row per processed item with REPORT_COLUMNS.
    """
    df = pd.DataFrame(report.details, columns=REPORT_COLUMNS)
    return df


def unmatched_dataframe(report: BulkReport) -> pd.DataFrame:
    """Rows of a report that did not resolve, with their error messages."""
    df = report_to_dataframe(report)
    return df[df["error"].notna()][["sku", "marketplace", "error"]].reset_index(drop=True)


def summary_data(report: BulkReport) -> Dict[str, Any]:
    """Summary metrics for a report's Summary sheet."""
    exact = sum(1 for d in report.details if d.get("match_type") == "exact")
    return {
        "Processed": report.processed,
        "Matched": report.matched,
        "Exact matches": exact,
        "Pattern matches": report.matched - exact,
        "Not matched": report.not_matched,
        "Match rate": f"{report.match_rate:.1%}",
        "Generated at": datetime.now().isoformat(timespec="seconds"),
    }


class ReportExporter:
    """
    Exporter for resolution reports.

    Attributes:
        config: Application configuration.
        output_dir: Directory for output files.
    """

    def __init__(self, config: AppConfig, output_dir: Optional[Path] = None) -> None:
        """
        Initialize the report exporter.

        Args:
            config: Application configuration.
            output_dir: Directory for output files. Uses config default if not provided.
        """
        self.config = config
        self.output_dir = Path(output_dir) if output_dir else Path(config.paths.output_dir)

    def generate_filename(self, prefix: str = "msku_report", suffix: str = ".xlsx") -> str:
        """Generate a timestamped filename for the export."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{prefix}_{timestamp}{suffix}"

    def export(self, report: BulkReport, output_path: Optional[Path] = None) -> Path:
        """
        Export a report to Excel or CSV, chosen by the output suffix.

        Excel output has a Results sheet and a Summary sheet; CSV output
        holds the results only.

        Args:
            report: Report to export.
            output_path: Full path for output file. Auto-generated (.xlsx) if not provided.

        Returns:
            Path: Path to the created file.

        Raises:
            ValueError: If the suffix is neither .xlsx nor .csv.
        """
        if output_path is None:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            output_path = self.output_dir / self.generate_filename()
        else:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)

        df = report_to_dataframe(report)
        suffix = output_path.suffix.lower()

        if suffix == ".csv":
            write_table(df, output_path)
        elif suffix == ".xlsx":
            summary_df = pd.DataFrame(
                [{"Metric": k, "Value": str(v)} for k, v in summary_data(report).items()]
            )
            with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
                df.to_excel(writer, sheet_name="Results", index=False)
                summary_df.to_excel(writer, sheet_name="Summary", index=False)
        else:
            raise ValueError(f"Unsupported report format: {suffix}. Expected .xlsx or .csv")

        logger.info(f"Exported {len(df)} resolution results to {output_path}")
        return output_path
