#!/usr/bin/env python3
"""
Ciclus RD - Database Migration Script
- Creates missing tables
- Upgrades legacy (v1, camelCase) report rows to the current row shape
"""

import argparse
import sys

from loguru import logger

from ciclus_rd.backend.database import create_backend
from ciclus_rd.backend.migrations import upgrade_report_rows
from ciclus_rd.shared.config import Settings, settings


def migrate_database(database_url: str = None) -> int:
    config = Settings(database_url=database_url) if database_url else settings
    backend = create_backend(config)
    try:
        return upgrade_report_rows(backend)
    finally:
        backend.dispose()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Migrate the Ciclus RD database")
    parser.add_argument("--database-url", help="SQLAlchemy URL (defaults to CICLUS_DATABASE_URL)")
    args = parser.parse_args(argv)

    try:
        count = migrate_database(args.database_url)
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        return 1

    logger.success(f"Migration finished, {count} report rows upgraded")
    return 0


if __name__ == "__main__":
    sys.exit(main())
