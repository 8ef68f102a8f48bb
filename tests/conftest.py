from collections.abc import Iterator
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from asset_tracker.domain.assets import PurchaseLot
from asset_tracker.domain.positions import Position
from asset_tracker.repositories.interfaces import LedgerStore
from asset_tracker.repositories.memory import InMemoryLedgerStore
from asset_tracker.repositories.sqlite import SQLiteDatabase, SQLiteLedgerStore
from asset_tracker.services.position_tracker import PositionTracker


@pytest.fixture
def db() -> Iterator[SQLiteDatabase]:
    """Create an in-memory SQLite database for testing."""
    database = SQLiteDatabase(":memory:")
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def sqlite_store(db: SQLiteDatabase) -> SQLiteLedgerStore:
    return SQLiteLedgerStore(db)


@pytest.fixture
def memory_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest) -> LedgerStore:
    """Every ledger store implementation, one test run each."""
    if request.param == "sqlite":
        return request.getfixturevalue("sqlite_store")
    return request.getfixturevalue("memory_store")


@pytest.fixture
def tracker(store: LedgerStore) -> PositionTracker:
    return PositionTracker(store)


@pytest.fixture
def empty_position() -> Position:
    return Position.new()


@pytest.fixture
def make_lot():
    """Factory for free-standing purchase lots."""
    asset_id = uuid4()

    def _make_lot(
        quantity: str | int,
        unit_price: str | int,
        settle_date: date = date(2024, 1, 2),
    ) -> PurchaseLot:
        return PurchaseLot(
            asset_id=asset_id,
            settle_date=settle_date,
            quantity=Decimal(quantity),
            unit_price=Decimal(unit_price),
        )

    return _make_lot


@pytest.fixture
def three_lots() -> list[PurchaseLot]:
    """Lots of 5 @ 80, 10 @ 100 and 15 @ 120, oldest first."""
    asset_id = uuid4()
    return [
        PurchaseLot(
            asset_id=asset_id,
            settle_date=date(2023, 1, 15),
            quantity=Decimal("5"),
            unit_price=Decimal("80"),
        ),
        PurchaseLot(
            asset_id=asset_id,
            settle_date=date(2023, 3, 20),
            quantity=Decimal("10"),
            unit_price=Decimal("100"),
        ),
        PurchaseLot(
            asset_id=asset_id,
            settle_date=date(2023, 6, 10),
            quantity=Decimal("15"),
            unit_price=Decimal("120"),
        ),
    ]
