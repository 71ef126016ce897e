"""
Initialize the Library Lending database.

This command:
1. Creates all database tables
2. Optionally loads generated sample data
3. Verifies the database is ready for MCP server use

Usage:
    library-lending-init-db [--drop-existing] [--sample-data] [--database-url URL]
"""

import argparse
import logging
import sys

from sqlalchemy import inspect

from .schema import Base
from .seed import seed_database
from .session import get_db_manager

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Initialize the Library Lending MCP Server database")
    parser.add_argument(
        "--drop-existing",
        action="store_true",
        help="Drop existing tables before creating new ones",
    )
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Load generated sample data after creating tables",
    )
    parser.add_argument(
        "--database-url",
        help="Override default database URL",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for database initialization."""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    args = build_parser().parse_args(argv)

    db_manager = get_db_manager(args.database_url)
    if not db_manager.verify_connection():
        logger.error("Failed to connect to database")
        return 1

    try:
        db_manager.init_database(drop_existing=args.drop_existing)

        tables = set(inspect(db_manager.engine).get_table_names())
        missing_tables = set(Base.metadata.tables) - tables
        if missing_tables:
            logger.error("Missing expected tables: %s", sorted(missing_tables))
            return 1
        logger.info("Created tables: %s", ", ".join(sorted(tables)))

        if args.sample_data:
            logger.info("Loading sample data...")
            session = db_manager.create_session()
            try:
                seed_database(session)
            finally:
                session.close()

        logger.info("Database initialization complete")
        return 0
    except Exception:
        logger.exception("Database initialization failed")
        return 1
    finally:
        db_manager.close()


if __name__ == "__main__":
    sys.exit(main())
