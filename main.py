"""
ReelScore - Rating maintenance CLI

Entry point for bulk recalculation, legacy migration and rating reports.
"""

import argparse
import json
import logging
import os
import sys

from reelscore.rating.analytics import RatingAnalytics
from reelscore.rating.recalculator import RatingRecalculator
from reelscore.registry.entity_registry import EntityRegistry
from reelscore.utils.storage import StorageManager
import config.settings as settings


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("reelscore.log")
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ReelScore - Dynamic rating maintenance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Recompute every movie, then every person
  python main.py recalculate

  # Recompute people only
  python main.py recalculate --kind person

  # Fill rating fields on entities created before dynamic ratings
  python main.py migrate

  # Show how one entity's rating is composed
  python main.py breakdown 3f2b9c1e-...

  # Admin vs. user divergence report
  python main.py analytics --top-n 5 --output-dir output/
        """
    )

    parser.add_argument(
        "--data-root",
        default=str(settings.DATA_ROOT),
        help=f"Data directory (default: {settings.DATA_ROOT})"
    )

    parser.add_argument(
        "--registry-path",
        help=f"Path to entity registry JSON (default: <data-root>/{settings.REGISTRY_FILENAME})"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("recalculate", "Recompute ratings for every entity"),
        ("migrate", "Populate rating fields on unmigrated entities"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--kind", choices=settings.ENTITY_KINDS, help="Restrict to one entity kind")

    breakdown = subparsers.add_parser("breakdown", help="Show rating breakdown for one entity")
    breakdown.add_argument("entity_id")

    analytics = subparsers.add_parser("analytics", help="Admin vs. user rating divergence")
    analytics.add_argument("--kind", choices=settings.ENTITY_KINDS)
    analytics.add_argument("--top-n", type=int, default=settings.ANALYTICS_TOP_N)
    analytics.add_argument(
        "--output-dir",
        default=str(settings.OUTPUT_ROOT),
        help=f"Directory for the CSV export (default: {settings.OUTPUT_ROOT})"
    )

    return parser


def run(args: argparse.Namespace) -> int:
    """Execute one CLI command. Returns the process exit code."""
    logger = logging.getLogger(__name__)

    registry_path = args.registry_path or os.path.join(args.data_root, settings.REGISTRY_FILENAME)
    registry = EntityRegistry(registry_path)
    storage = StorageManager(args.data_root)
    recalculator = RatingRecalculator(registry, storage)

    if args.command in ("recalculate", "migrate"):
        if args.command == "recalculate":
            report = recalculator.recalculate_all(kind=args.kind)
        else:
            report = recalculator.migrate_ratings(kind=args.kind)

        print("=" * 60)
        print(f"{report.operation.capitalize()} finished")
        print("=" * 60)
        print(f"Entities: {report.total_entities}")
        print(f"Updated:  {report.updated_count}")
        print(f"Skipped:  {report.skipped_count}")
        print(f"Errors:   {len(report.errors)}")
        for error in report.errors:
            print(f"  - {error}")
        print("=" * 60)
        return 0 if report.success else 1

    if args.command == "breakdown":
        breakdown = recalculator.get_rating_breakdown(args.entity_id)
        if breakdown is None:
            logger.error(f"Entity not found: {args.entity_id}")
            return 1
        print(json.dumps(breakdown, indent=2))
        return 0

    analytics = RatingAnalytics(registry)
    report = analytics.build_report(kind=args.kind, top_n=args.top_n)
    csv_path = analytics.export_csv(args.output_dir, kind=args.kind)
    print(json.dumps(report, indent=2))
    print(f"CSV: {csv_path}")
    return 0


def main():
    """Main CLI entry point."""
    args = build_parser().parse_args()

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        sys.exit(run(args))

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        print(f"\nCommand failed: {e}")
        print("Check reelscore.log for details")
        sys.exit(1)


if __name__ == "__main__":
    main()
