"""
Report export module.

Handles writing bulk resolution reports to Excel or CSV.
"""

from msku_resolver.exporter.report_exporter import (
    ReportExporter,
    report_to_dataframe,
    unmatched_dataframe,
)

__all__ = [
    "ReportExporter",
    "report_to_dataframe",
    "unmatched_dataframe",
]
