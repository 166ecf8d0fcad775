#!/usr/bin/env python3
"""
One-shot script to initialize the SQLite schema and refresh Loto Bonheur draws.

Usage (from repo root):
    python scripts/update_draws.py [MONTH]

MONTH is passed to the results API as-is (e.g. 2024-08); without it the
latest published results are fetched.

Output:
- Database path
- Draw count before/after update
- Latest 10 draw dates
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from loguru import logger

from lotobonheur.database import (
    count_draw_results,
    get_db_path,
    get_draw_results,
    initialize_database,
)
from lotobonheur.loader import LoaderError, sync_results


def main() -> int:
    month = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        logger.info(f"Database path: {get_db_path()}")

        # Ensure schema exists
        initialize_database()

        before = count_draw_results()
        logger.info(f"Existing draws before update: {before}")

        report = sync_results(month=month)
        logger.info(f"Stored {report.stored}/{report.fetched} draws for {', '.join(report.draw_names)}")
        logger.info(f"Total draws after update: {count_draw_results()}")

        logger.info("Latest 10 draws (DESC):")
        for row in get_draw_results(limit=10):
            logger.info(f"  {row['draw_date']} {row['draw_name']}: {row['winning_numbers']}")

        return 0
    except LoaderError as e:
        logger.error(f"Update failed: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Update failed: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
