"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest

import lounge_pos.infrastructure.storage.sqlite.connection as conn_module
from lounge_pos.application.services import reset_services
from lounge_pos.config import reset_settings
from lounge_pos.core.entities import Product
from lounge_pos.infrastructure.storage.sqlite import ConnectionPool, SQLiteInventoryStore, close_pool
from lounge_pos.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point settings at a throwaway data dir and silence notifications."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("NOTIFY_BACKEND", "none")
    reset_settings()
    reset_services()
    yield
    reset_settings()
    reset_services()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def migrated_db(temp_db_path: Path) -> AsyncGenerator[Path, None]:
    """Migrated temporary database installed as the global pool."""
    await initialize_database(temp_db_path, create_backup_before=False)
    conn_module._pool = ConnectionPool(temp_db_path, pool_size=3, busy_timeout=5000)
    await conn_module._pool.initialize()
    try:
        yield temp_db_path
    finally:
        await close_pool()


@pytest.fixture
def sample_product() -> Product:
    return Product(
        id="P1",
        name="Tusker Lager 500ml",
        category="beer",
        unit_price=1000,
        unit_cost=600,
        quantity_on_hand=10,
    )


@pytest.fixture
async def stocked_db(migrated_db: Path, sample_product: Product) -> Path:
    """Migrated database holding P1 (1000/600, stock 10) and P2 (500/300, stock 5)."""
    store = SQLiteInventoryStore()
    await store.create_product(sample_product)
    await store.create_product(
        Product(
            id="P2",
            name="Gilbeys Gin 250ml",
            category="gin",
            unit_price=500,
            unit_cost=300,
            quantity_on_hand=5,
        )
    )
    return migrated_db
