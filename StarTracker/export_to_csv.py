#!/usr/bin/env python3
"""
Export script for StarTracker.
Exports the latest stored star comparison to CSV format.
"""

import logging
import sys
import argparse

from core.use_cases import ExportStarReport
from infrastructure.db_client import DatabaseClient
from infrastructure.history_store import JsonHistoryStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def main():
    """Main export entry point."""
    parser = argparse.ArgumentParser(
        description="Export the latest star comparison to CSV"
    )
    parser.add_argument(
        "--output",
        type=str,
        default="stars.csv",
        help="Output CSV file path (default: stars.csv)",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=".star-tracker-data",
        help="Directory holding stars-data.json (default: .star-tracker-data)",
    )
    parser.add_argument(
        "--postgres",
        action="store_true",
        help="Read the history from PostgreSQL instead of the data directory",
    )

    args = parser.parse_args()

    try:
        logger.info("=" * 60)
        logger.info("StarTracker - Data Export")
        logger.info("=" * 60)
        logger.info(f"Output file: {args.output}")
        logger.info("=" * 60)

        if args.postgres:
            with DatabaseClient() as db:
                results = ExportStarReport(db).execute(args.output)
        else:
            store = JsonHistoryStore(args.data_dir)
            results = ExportStarReport(store).execute(args.output)

        logger.info("=" * 60)
        logger.info("Export completed successfully!")
        logger.info(f"Exported {len(results.repos):,} repositories to: {args.output}")
        logger.info("=" * 60)

        return 0

    except Exception as e:
        logger.error(f"Export failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
