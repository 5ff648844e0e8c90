#!/usr/bin/env python3
"""
Lounge POS management CLI.

Usage:
    python manage.py migrate     Apply pending database migrations
    python manage.py status      Show migration status
    python manage.py seed        Load the starter product catalog
"""

import argparse
import asyncio
import sys
from pathlib import Path

from lounge_pos.config import configure_logging, get_logger, get_settings
from lounge_pos.core.entities.product import Product

logger = get_logger("manage")

# (id, name, category, unit_price, unit_cost, quantity_on_hand)
STARTER_CATALOG: list[tuple[str, str, str, float, float, int]] = [
    ("4th-street-red-1500ml", "4th Street Red 1500ml", "wine", 2000, 1600, 0),
    ("4th-street-white-750ml", "4th Street White 750ml", "wine", 1500, 914, 0),
    ("8pm-whisky-1l", "8 PM WHISKY 1 Litre", "whiskey", 1750, 1250, 0),
    ("8pm-whisky-750ml", "8 PM WHISKY 750ML", "whiskey", 1600, 1050, 0),
    ("baileys-cream-1l", "Baileys Cream 1 Litre", "spirits", 3600, 2600, 0),
    ("balozi-bottle", "Balozi Bottle", "beer", 300, 169, 0),
    ("best-dry-gin-250ml", "Best Dry Gin 250ml", "gin", 450, 268, 0),
    ("best-dry-gin-750ml", "Best Dry Gin 750ml", "gin", 1250, 746, 1),
    ("best-whiskey-250ml", "Best Whiskey 250ml", "whiskey", 450, 315, 0),
    ("best-whiskey-750ml", "Best Whiskey 750ml", "whiskey", 1400, 952, 0),
    ("black-and-white-350ml", "Black & White 350ml", "whiskey", 900, 585, 0),
    ("black-and-white-750ml", "Black & White 750ml", "whiskey", 1600, 1140, 0),
    ("black-label-375ml", "Black Label 375ml", "whiskey", 2000, 1680, 0),
    ("black-label-750ml", "Black Label 750ml", "whiskey", 5000, 3120, 0),
    ("blue-ice-250ml", "Blue Ice 250ml", "vodka", 200, 150, 8),
    ("blue-ice-shot", "Blue Ice Shot", "vodka", 50, 50, 10),
]


async def _migrate(db_path: Path | None, backup: bool) -> int:
    from lounge_pos.infrastructure.storage.sqlite.migrations import initialize_database

    results = await initialize_database(db_path, create_backup_before=backup)
    if not results:
        print("Database is up to date")
    for result in results:
        status = "SUCCESS" if result.success else "FAILED"
        print(f"[{status}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"         Error: {result.error}")
    return 0 if all(r.success for r in results) else 1


async def _status(db_path: Path | None) -> int:
    from lounge_pos.infrastructure.storage.sqlite.migrations import (
        get_migration_status,
        verify_schema_integrity,
    )

    status = await get_migration_status(db_path)
    print(f"Database exists:    {status['exists']}")
    print(f"Current version:    {status['current_version'] or 'N/A'}")
    print(f"Applied migrations: {status['applied_migrations']}")
    print(f"Pending migrations: {status['pending_migrations']}")

    if not status["exists"]:
        return 1
    failed = False
    for check in await verify_schema_integrity(db_path):
        print(f"[{check['status']}] {check['check']}")
        failed = failed or check["status"] != "PASS"
    return 1 if failed else 0


async def seed_catalog() -> tuple[int, int]:
    """Insert starter products that are not present yet. Returns (created, skipped)."""
    from lounge_pos.infrastructure.storage.sqlite import get_inventory_store

    store = await get_inventory_store()
    created = skipped = 0
    for product_id, name, category, price, cost, quantity in STARTER_CATALOG:
        if await store.get_product(product_id) is not None:
            skipped += 1
            continue
        await store.create_product(
            Product(
                id=product_id,
                name=name,
                category=category,
                unit_price=price,
                unit_cost=cost,
                quantity_on_hand=quantity,
            )
        )
        created += 1

    logger.info("catalog_seeded", created=created, skipped=skipped)
    return created, skipped


async def _seed() -> int:
    from lounge_pos.infrastructure.storage.sqlite import close_pool
    from lounge_pos.infrastructure.storage.sqlite.migrations import initialize_database

    await initialize_database()
    try:
        created, skipped = await seed_catalog()
    finally:
        await close_pool()
    print(f"Seeded {created} products ({skipped} already present)")
    return 0


def cmd_migrate(args: argparse.Namespace) -> int:
    return asyncio.run(_migrate(args.db_path, backup=not args.no_backup))


def cmd_status(args: argparse.Namespace) -> int:
    return asyncio.run(_status(args.db_path))


def cmd_seed(args: argparse.Namespace) -> int:
    return asyncio.run(_seed())


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Lounge POS management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending migrations")
    p_migrate.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip backup before migrating")
    p_migrate.set_defaults(func=cmd_migrate)

    # status
    p_status = sub.add_parser("status", help="Show migration status")
    p_status.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    p_status.set_defaults(func=cmd_status)

    # seed
    p_seed = sub.add_parser("seed", help="Load the starter product catalog")
    p_seed.set_defaults(func=cmd_seed)

    args = parser.parse_args(argv)
    configure_logging()
    logger.debug("manage_command", command=args.command, db=str(get_settings().storage.db_path))
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
