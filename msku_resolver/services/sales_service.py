"""
Sales data processing.

Resolves the SKU of every row in a marketplace sales export to its MSKU and
summarizes the batch (orders, quantity, revenue, mapped/unmapped counts).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

import pandas as pd

from msku_resolver.exceptions import AppException, FileValidationError
from msku_resolver.ingestion.sku_extractor import clean_value
from msku_resolver.services.resolution_service import ResolutionService

logger = logging.getLogger(__name__)


SALES_FIELDS = {
    "sku": ["sku", "SKU", "product_sku", "item_sku", "ProductSKU"],
    "marketplace": ["marketplace", "Marketplace", "channel", "Channel", "platform", "Platform"],
    "date": ["date", "Date", "order_date", "OrderDate", "purchase_date"],
    "quantity": ["quantity", "Quantity", "qty", "QTY", "units"],
    "price": ["price", "Price", "unit_price", "UnitPrice", "amount"],
    "order_number": ["order_number", "OrderNumber", "order_id", "OrderID"],
}

DEFAULT_MARKETPLACE = "Unknown"
DEFAULT_ORDER_NUMBER = "Unknown"

RESULT_COLUMNS = [
    "original_sku", "msku", "marketplace", "order_date", "quantity", "price",
    "order_number", "mapping_confidence", "has_error", "error_message",
]
RESULT_DTYPES = {"quantity": "int64", "price": "float64", "mapping_confidence": "float64", "has_error": "bool"}


def first_present(row: Dict[str, Any], candidates: Sequence[str]) -> Optional[str]:
    """Value of the first candidate field that is present and non-blank in a row."""
    for name in candidates:
        value = clean_value(row.get(name))
        if value:
            return value
    return None


def parse_quantity(value: Optional[str]) -> int:
    """Quantity as int; 1 when the field is absent, 0 when it does not parse."""
    if value is None:
        return 1
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return 0


def parse_price(value: Optional[str]) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (ValueError, OverflowError):
        return 0.0


def json_value(value: Any) -> Any:
    """A cell value as JSON: ISO strings for timestamps, None for NaN/NaT."""
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    return value


@dataclass
class SalesReport:
    """
    Resolved sales rows plus batch summary.

    Attributes:
        rows: One row per sale with original_sku, msku, marketplace,
            order_date, quantity, price, order_number, mapping_confidence,
            has_error, error_message.
        summary: Aggregates over the batch.
    """

    rows: pd.DataFrame
    summary: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = [
            {name: json_value(value) for name, value in record.items()}
            for record in self.rows.to_dict(orient="records")
        ]
        return {"data": data, "summary": self.summary}


class SalesProcessor:
    """
    Processes sales exports against the mapping set.

    Attributes:
        service: Resolution service used for lookups.
    """

    def __init__(self, service: ResolutionService):
        self.service = service

    def process_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Resolve one sales row.

        Raises:
            FileValidationError: If the row has no SKU field.
        """
        sku = first_present(row, SALES_FIELDS["sku"])
        if sku is None:
            raise FileValidationError(
                "SKU field not found in data", missing_columns=["sku"]
            )

        marketplace = first_present(row, SALES_FIELDS["marketplace"]) or DEFAULT_MARKETPLACE
        order_date = first_present(row, SALES_FIELDS["date"])

        msku = None
        confidence = 0.0
        error_message = None
        try:
            match = self.service.resolve(sku, marketplace)
            msku = match.msku
            confidence = match.confidence
        except AppException as e:
            error_message = e.message

        return {
            "original_sku": sku,
            "msku": msku,
            "marketplace": marketplace,
            "order_date": pd.to_datetime(order_date, errors="coerce") if order_date else pd.NaT,
            "quantity": parse_quantity(first_present(row, SALES_FIELDS["quantity"])),
            "price": parse_price(first_present(row, SALES_FIELDS["price"])),
            "order_number": first_present(row, SALES_FIELDS["order_number"]) or DEFAULT_ORDER_NUMBER,
            "mapping_confidence": confidence,
            "has_error": msku is None,
            "error_message": error_message,
        }

    def process_sales(self, df: pd.DataFrame) -> SalesReport:
        """
        Resolve every row of a sales export and summarize it.

        Args:
            df: Sales rows as loaded from CSV/Excel.

        Returns:
            SalesReport: Resolved rows and summary.

        Raises:
            FileValidationError: If a row has no SKU field.
        """
        rows = [self.process_row(row) for row in df.to_dict(orient="records")]
        # Text columns stay object so a missing MSKU reads back as None
        result = pd.DataFrame(
            {name: pd.Series([row[name] for row in rows], dtype=object) for name in RESULT_COLUMNS}
        ).astype(RESULT_DTYPES)
        result["order_date"] = pd.to_datetime(result["order_date"])

        summary = self.generate_summary(result)
        logger.info(
            f"Processed {summary['total_orders']} sales rows: "
            f"{summary['mapped_skus']} mapped, {summary['unmapped_skus']} unmapped"
        )
        return SalesReport(rows=result, summary=summary)

    @staticmethod
    def generate_summary(rows: pd.DataFrame) -> Dict[str, Any]:
        """Aggregate resolved sales rows."""
        if rows.empty:
            return {
                "total_orders": 0,
                "total_quantity": 0,
                "total_revenue": 0.0,
                "mapped_skus": 0,
                "unmapped_skus": 0,
                "marketplaces": [],
                "date_range": {"start": None, "end": None},
            }

        dates = rows["order_date"].dropna()
        mapped = int(rows["msku"].notna().sum())

        return {
            "total_orders": len(rows),
            "total_quantity": int(rows["quantity"].sum()),
            "total_revenue": round(float((rows["quantity"] * rows["price"]).sum()), 2),
            "mapped_skus": mapped,
            "unmapped_skus": len(rows) - mapped,
            "marketplaces": list(dict.fromkeys(rows["marketplace"])),
            "date_range": {
                "start": dates.min().isoformat() if not dates.empty else None,
                "end": dates.max().isoformat() if not dates.empty else None,
            },
        }
