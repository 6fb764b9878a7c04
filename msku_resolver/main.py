"""
CLI entry point for the MSKU resolver.

Loads a mapping file into the resolution engine and resolves either a
single SKU, a file of SKUs (CSV/Excel/JSON), or a sales export.
"""

import argparse
import logging
import sys
from pathlib import Path

from msku_resolver.exceptions import AppException
from msku_resolver.exporter.report_exporter import ReportExporter
from msku_resolver.ingestion.mapping_loader import load_mappings
from msku_resolver.ingestion.sku_extractor import SkuExtractor, load_rows
from msku_resolver.services.resolution_service import ResolutionService
from msku_resolver.services.sales_service import SalesProcessor
from msku_resolver.utils.config_loader import AppConfig, load_config, load_env
from msku_resolver.utils.io_helpers import write_table
from msku_resolver.utils.logging_config import setup_logging


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="msku-resolver",
        description="Resolve marketplace SKUs to master SKUs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    msku-resolver -m data/mapping/sku_mappings.xlsx --sku GLD --marketplace Shopify
    msku-resolver -m data/mapping/sku_mappings.xlsx -i data/input/orders.csv
    msku-resolver -m data/mapping/sku_mappings.xlsx -i data/input/sales.xlsx --sales
        """,
    )

    parser.add_argument(
        "--mappings", "-m",
        type=Path,
        help="Path to the SKU mapping file (default: from config)",
    )

    parser.add_argument(
        "--sku",
        help="Resolve a single SKU (requires --marketplace)",
    )

    parser.add_argument(
        "--marketplace",
        help="Marketplace of the single SKU",
    )

    parser.add_argument(
        "--input", "-i",
        type=Path,
        help="CSV/Excel/JSON file of SKUs to resolve",
    )

    parser.add_argument(
        "--sales",
        action="store_true",
        help="Treat --input as a sales export and print a sales summary",
    )

    parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Path for the report file (.xlsx or .csv, default: auto-generated in output dir)",
    )

    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: config/config.yaml)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run without writing a report file",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser


def load_service(config: AppConfig, mapping_path: Path) -> ResolutionService:
    """Load a mapping file into a resolution service."""
    mappings = load_mappings(mapping_path)
    service = ResolutionService(config, mappings)
    stats = service.get_stats()
    logger.info(
        f"Loaded {stats['total_mappings']} mappings "
        f"({stats['distinct_mskus']} MSKUs, {stats['total_patterns']} patterns)"
    )
    return service


def resolve_single(service: ResolutionService, sku: str, marketplace: str) -> int:
    """Resolve and print one SKU. Returns an exit code."""
    try:
        result = service.resolve(sku, marketplace)
    except AppException as e:
        print(f"\n✗ {e.message}")
        return 1

    if result.is_exact:
        print(f"\n✓ {sku} ({marketplace}) -> {result.msku} [exact]")
    else:
        print(
            f"\n✓ {sku} ({marketplace}) -> {result.msku} "
            f"[pattern: {result.pattern_kind}, confidence {result.confidence:.2f}]"
        )
    return 0


def resolve_file(config: AppConfig, service: ResolutionService, args: argparse.Namespace) -> int:
    """Resolve every SKU in a file and write a report. Returns an exit code."""
    extractor = SkuExtractor(config)
    extraction = extractor.process_file(args.input)
    report = service.bulk_resolve(extraction.candidates)

    print("\n" + "=" * 60)
    print("RESOLUTION SUMMARY")
    print("=" * 60)
    print(f"  File: {extraction.file_name} ({extraction.file_type}, {extraction.row_count} rows)")
    print(f"  Processed: {report.processed}")
    print(f"  Matched: {report.matched}")
    print(f"  Not matched: {report.not_matched}")
    print(f"  Match rate: {report.match_rate:.1%}")

    if args.dry_run:
        print("\n[DRY RUN] - No report file written")
    else:
        exporter = ReportExporter(config)
        output_path = exporter.export(report, args.output)
        print(f"\n✓ Report written: {output_path}")

    print("=" * 60 + "\n")
    return 0


def resolve_sales(service: ResolutionService, args: argparse.Namespace) -> int:
    """Resolve a sales export, print its summary and optionally write rows."""
    df = load_rows(args.input)
    report = SalesProcessor(service).process_sales(df)
    summary = report.summary

    print("\n" + "=" * 60)
    print("SALES SUMMARY")
    print("=" * 60)
    print(f"  Orders: {summary['total_orders']}")
    print(f"  Quantity: {summary['total_quantity']}")
    print(f"  Revenue: {summary['total_revenue']:.2f}")
    print(f"  Mapped SKUs: {summary['mapped_skus']}")
    print(f"  Unmapped SKUs: {summary['unmapped_skus']}")
    print(f"  Marketplaces: {', '.join(summary['marketplaces'])}")
    if summary["date_range"]["start"]:
        print(f"  Dates: {summary['date_range']['start']} to {summary['date_range']['end']}")

    if args.output and not args.dry_run:
        write_table(report.rows, args.output, sheet_name="Sales")
        print(f"\n✓ Resolved sales written: {args.output}")

    print("=" * 60 + "\n")
    return 0


def resolve_input_path(config: AppConfig, input_path: Path) -> Path:
    """Look a relative input path up in paths.input_dir when it is not in the cwd."""
    if input_path.exists() or input_path.is_absolute():
        return input_path
    candidate = Path(config.paths.input_dir) / input_path
    return candidate if candidate.exists() else input_path


def run_cli(args: argparse.Namespace, config: AppConfig) -> int:
    """
    Run the CLI workflow.

    Args:
        args: Parsed command line arguments.
        config: Application configuration.

    Returns:
        int: Exit code (0 for success, non-zero for errors).
    """
    mapping_path = args.mappings or config.paths.mapping_path

    try:
        service = load_service(config, mapping_path)
    except FileNotFoundError:
        print(f"\n✗ Error: Mapping file not found: {mapping_path}")
        return 1
    except AppException as e:
        print(f"\n✗ Error: {e.message}")
        return 1

    if args.sku is not None:
        return resolve_single(service, args.sku, args.marketplace or "")

    if args.input is None:
        print("\n✗ Error: provide --sku/--marketplace or --input")
        return 1

    args.input = resolve_input_path(config, args.input)
    try:
        if args.sales:
            return resolve_sales(service, args)
        return resolve_file(config, service, args)
    except FileNotFoundError:
        print(f"\n✗ Error: Input file not found: {args.input}")
        return 1
    except (AppException, ValueError) as e:
        logger.error(f"Failed to process {args.input}: {e}")
        print(f"\n✗ Error: {e}")
        return 1


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        int: Exit code.
    """
    load_env()
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except AppException as e:
        print(f"\n✗ Error: {e.message}")
        return 1

    setup_logging(
        level="DEBUG" if args.verbose else config.logging.level,
        log_format=config.logging.format,
        log_file=config.logging.file,
    )

    try:
        return run_cli(args, config)
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
