#!/usr/bin/env python3
"""
Database Management Utility

This script provides utilities to manage the bookstore database:
- Create the schema
- Seed default user types and order statuses
- Drop the schema
- Show row counts per table
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from api.config import config
from storage.database import DatabaseManager
from storage.seed import seed_reference_data
from utilities.logger import setup_logging


async def init_schema(db_manager: DatabaseManager):
    """Create all tables."""
    await db_manager.create_tables()
    print("✅ Schema created")


async def seed(db_manager: DatabaseManager):
    """Create tables if needed and insert reference data."""
    await db_manager.create_tables()
    async with db_manager.session() as session:
        inserted = await seed_reference_data(session)

    for table, count in inserted.items():
        if count:
            print(f"✅ {table}: inserted {count} rows")
        else:
            print(f"ℹ️  {table}: already populated, skipped")


async def drop_schema(db_manager: DatabaseManager):
    """Drop all tables."""
    await db_manager.drop_tables()
    print("🗑️  Schema dropped")


async def show_statistics(db_manager: DatabaseManager):
    """Print row counts per table."""
    counts = await db_manager.get_table_counts()

    print("\n" + "=" * 50)
    print("📊 DATABASE STATISTICS")
    print("=" * 50)
    for table, count in sorted(counts.items()):
        print(f"  {table:<20} {count:>8}")


COMMANDS = {
    "init": init_schema,
    "seed": seed,
    "drop": drop_schema,
    "stats": show_statistics,
}


async def main():
    """Main function."""
    if len(sys.argv) < 2 or sys.argv[1].lower() not in COMMANDS:
        print("Usage: python manage_db.py [init|seed|drop|stats]")
        print()
        print("Commands:")
        print("  init   - Create all tables")
        print("  seed   - Insert default user types and order statuses")
        print("  drop   - Drop all tables")
        print("  stats  - Show row counts per table")
        sys.exit(1)

    command = COMMANDS[sys.argv[1].lower()]

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        debug=config.debug,
        sql_echo=config.database_echo
    )

    db_manager = DatabaseManager(config.database_url, echo=config.database_echo)
    try:
        await db_manager.connect()
        await command(db_manager)
    except Exception as e:
        print(f"❌ Error: {e}")
        sys.exit(1)
    finally:
        await db_manager.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
