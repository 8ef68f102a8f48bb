"""Contract tests run against every LedgerStore implementation."""

import sqlite3
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from asset_tracker.exceptions import (
    AssetNotFoundError,
    DatabaseError,
    InvalidQuantityError,
    InvalidSymbolError,
    PurchaseLotNotFoundError,
)
from asset_tracker.repositories.interfaces import LedgerStore
from asset_tracker.repositories.sqlite import SQLiteDatabase, SQLiteLedgerStore


class TestAssets:
    def test_get_or_create_creates_once(self, store: LedgerStore):
        first = store.get_or_create_asset("AAPL")
        second = store.get_or_create_asset("AAPL")

        assert first.id == second.id
        assert first.symbol == "AAPL"

    def test_symbols_are_distinct(self, store: LedgerStore):
        aapl = store.get_or_create_asset("AAPL")
        msft = store.get_or_create_asset("MSFT")

        assert aapl.id != msft.id
        assert store.get_asset_by_symbol("MSFT").id == msft.id

    @pytest.mark.parametrize("symbol", ["", "   ", None, 42])
    def test_invalid_symbol_rejected(self, store: LedgerStore, symbol):
        with pytest.raises(InvalidSymbolError):
            store.get_or_create_asset(symbol)

    def test_unknown_asset_lookups_return_none(self, store: LedgerStore):
        assert store.get_asset(uuid4()) is None
        assert store.get_asset_by_symbol("NOPE") is None
        assert store.load_asset(uuid4()) is None


class TestPurchaseLots:
    def test_lots_listed_oldest_first(self, store: LedgerStore):
        asset = store.get_or_create_asset("AAPL")
        late = store.create_purchase_lot(asset.id, date(2024, 5, 1), Decimal("1"), Decimal("10"))
        early = store.create_purchase_lot(asset.id, date(2024, 1, 1), Decimal("2"), Decimal("10"))
        same_day = store.create_purchase_lot(asset.id, date(2024, 1, 1), Decimal("3"), Decimal("10"))

        lots = list(store.list_purchase_lots(asset.id))

        assert [lot.id for lot in lots] == [early.id, same_day.id, late.id]

    def test_lots_are_scoped_to_asset(self, store: LedgerStore):
        aapl = store.get_or_create_asset("AAPL")
        msft = store.get_or_create_asset("MSFT")
        store.create_purchase_lot(aapl.id, date(2024, 1, 1), Decimal("1"), Decimal("10"))

        assert list(store.list_purchase_lots(msft.id)) == []

    def test_decimal_values_survive_storage(self, store: LedgerStore):
        asset = store.get_or_create_asset("BTC")
        lot = store.create_purchase_lot(
            asset.id, date(2024, 1, 1), Decimal("0.00000001"), Decimal("43125.17")
        )

        stored = store.get_purchase_lot(lot.id)

        assert stored.quantity == Decimal("0.00000001")
        assert stored.unit_price == Decimal("43125.17")
        assert stored.settle_date == date(2024, 1, 1)

    def test_update_quantity(self, store: LedgerStore):
        asset = store.get_or_create_asset("AAPL")
        lot = store.create_purchase_lot(asset.id, date(2024, 1, 1), Decimal("10"), Decimal("10"))

        updated = store.update_purchase_lot_quantity(lot.id, Decimal("4"))

        assert updated.quantity == Decimal("4")
        assert store.get_purchase_lot(lot.id).quantity == Decimal("4")

    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-1")])
    def test_update_to_non_positive_quantity_rejected(self, store: LedgerStore, quantity):
        asset = store.get_or_create_asset("AAPL")
        lot = store.create_purchase_lot(asset.id, date(2024, 1, 1), Decimal("10"), Decimal("10"))

        with pytest.raises(InvalidQuantityError):
            store.update_purchase_lot_quantity(lot.id, quantity)

        assert store.get_purchase_lot(lot.id).quantity == Decimal("10")

    def test_update_missing_lot(self, store: LedgerStore):
        with pytest.raises(PurchaseLotNotFoundError):
            store.update_purchase_lot_quantity(uuid4(), Decimal("1"))

    def test_delete_lot(self, store: LedgerStore):
        asset = store.get_or_create_asset("AAPL")
        lot = store.create_purchase_lot(asset.id, date(2024, 1, 1), Decimal("10"), Decimal("10"))

        store.delete_purchase_lot(lot.id)

        assert store.get_purchase_lot(lot.id) is None
        with pytest.raises(PurchaseLotNotFoundError):
            store.delete_purchase_lot(lot.id)

    def test_create_lot_for_unknown_asset(self, store: LedgerStore):
        with pytest.raises(AssetNotFoundError):
            store.create_purchase_lot(uuid4(), date(2024, 1, 1), Decimal("1"), Decimal("1"))

    def test_create_lot_with_zero_quantity_rejected(self, store: LedgerStore):
        asset = store.get_or_create_asset("AAPL")

        with pytest.raises(InvalidQuantityError):
            store.create_purchase_lot(asset.id, date(2024, 1, 1), Decimal("0"), Decimal("1"))


class TestAggregates:
    def test_sums_are_zero_without_lots(self, store: LedgerStore):
        asset = store.get_or_create_asset("AAPL")

        assert store.sum_outstanding_quantity(asset.id) == Decimal("0")
        assert store.sum_outstanding_cost(asset.id) == Decimal("0")
        assert store.sum_sold_quantity(asset.id) == Decimal("0")

    def test_outstanding_sums(self, store: LedgerStore):
        asset = store.get_or_create_asset("AAPL")
        store.create_purchase_lot(asset.id, date(2024, 1, 1), Decimal("10"), Decimal("100"))
        store.create_purchase_lot(asset.id, date(2024, 2, 1), Decimal("0.5"), Decimal("101.10"))

        assert store.sum_outstanding_quantity(asset.id) == Decimal("10.5")
        assert store.sum_outstanding_cost(asset.id) == Decimal("1050.55")

    def test_sale_records(self, store: LedgerStore):
        asset = store.get_or_create_asset("AAPL")
        store.create_sale_record(asset.id, date(2024, 3, 1), Decimal("4"), Decimal("120"))
        store.create_sale_record(asset.id, date(2024, 2, 1), Decimal("1"), Decimal("110"))

        sales = list(store.list_sale_records(asset.id))

        assert [sale.sell_date for sale in sales] == [date(2024, 2, 1), date(2024, 3, 1)]
        assert store.sum_sold_quantity(asset.id) == Decimal("5")

    def test_load_asset_includes_activity(self, store: LedgerStore):
        asset = store.get_or_create_asset("AAPL")
        store.create_purchase_lot(asset.id, date(2024, 1, 1), Decimal("10"), Decimal("100"))
        store.create_sale_record(asset.id, date(2024, 3, 1), Decimal("4"), Decimal("120"))

        loaded = store.load_asset(asset.id)

        assert loaded.symbol == "AAPL"
        assert len(loaded.purchase_lots) == 1
        assert len(loaded.sales) == 1
        assert loaded.outstanding_quantity == Decimal("10")
        assert loaded.sold_quantity == Decimal("4")


class TestAtomic:
    def test_commits_on_success(self, store: LedgerStore):
        asset = store.get_or_create_asset("AAPL")
        lot = store.create_purchase_lot(asset.id, date(2024, 1, 1), Decimal("10"), Decimal("100"))

        with store.atomic():
            store.update_purchase_lot_quantity(lot.id, Decimal("3"))

        assert store.get_purchase_lot(lot.id).quantity == Decimal("3")

    def test_rolls_back_on_error(self, store: LedgerStore):
        asset = store.get_or_create_asset("AAPL")
        lot = store.create_purchase_lot(asset.id, date(2024, 1, 1), Decimal("10"), Decimal("100"))

        with pytest.raises(PurchaseLotNotFoundError):
            with store.atomic():
                store.update_purchase_lot_quantity(lot.id, Decimal("3"))
                store.delete_purchase_lot(uuid4())

        assert store.get_purchase_lot(lot.id).quantity == Decimal("10")


class TestSQLitePersistence:
    def test_data_survives_reopening(self, tmp_path):
        path = tmp_path / "ledger.db"
        db = SQLiteDatabase(path)
        db.initialize()
        store = SQLiteLedgerStore(db)
        asset = store.get_or_create_asset("AAPL")
        store.create_purchase_lot(asset.id, date(2024, 1, 1), Decimal("10"), Decimal("100"))
        store.close()

        reopened = SQLiteDatabase(path)
        reopened.initialize()
        store = SQLiteLedgerStore(reopened)

        assert store.sum_outstanding_cost(asset.id) == Decimal("1000")
        store.close()


class FailingCommitConnection:
    """Delegates to a real connection but refuses to commit."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def __getattr__(self, name: str):
        return getattr(self._connection, name)

    def commit(self) -> None:
        raise sqlite3.OperationalError("database is locked")


class TestSQLiteFailures:
    def test_failed_commit_is_mapped_and_rolled_back(
        self, db: SQLiteDatabase, sqlite_store: SQLiteLedgerStore, monkeypatch
    ):
        asset = sqlite_store.get_or_create_asset("AAPL")
        lot = sqlite_store.create_purchase_lot(
            asset.id, date(2024, 1, 1), Decimal("10"), Decimal("100")
        )
        connection = FailingCommitConnection(db.get_connection())
        monkeypatch.setattr(db, "get_connection", lambda: connection)

        with pytest.raises(DatabaseError, match="commit failed"):
            with sqlite_store.atomic():
                sqlite_store.update_purchase_lot_quantity(lot.id, Decimal("3"))

        assert sqlite_store.get_purchase_lot(lot.id).quantity == Decimal("10")

    def test_update_of_lot_that_vanished_raises_not_found(
        self, sqlite_store: SQLiteLedgerStore, monkeypatch
    ):
        asset = sqlite_store.get_or_create_asset("AAPL")
        lot = sqlite_store.create_purchase_lot(
            asset.id, date(2024, 1, 1), Decimal("10"), Decimal("100")
        )
        monkeypatch.setattr(sqlite_store, "get_purchase_lot", lambda lot_id: None)

        with pytest.raises(PurchaseLotNotFoundError):
            sqlite_store.update_purchase_lot_quantity(lot.id, Decimal("3"))
