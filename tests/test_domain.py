from dataclasses import FrozenInstanceError
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from asset_tracker.domain.assets import Asset, PurchaseLot, SaleRecord, normalize_symbol
from asset_tracker.domain.plans import DeleteLot, PlanActionType, UpdateLot
from asset_tracker.domain.positions import Position
from asset_tracker.exceptions import (
    InvalidAmountError,
    InvalidDateError,
    InvalidPriceError,
    InvalidQuantityError,
    InvalidSymbolError,
)


class TestNormalizeSymbol:
    def test_strips_whitespace(self):
        assert normalize_symbol("  AAPL ") == "AAPL"

    def test_case_is_preserved(self):
        assert normalize_symbol("brk.b") == "brk.b"

    @pytest.mark.parametrize("symbol", ["", "\t", None, 7, ["AAPL"]])
    def test_invalid(self, symbol):
        with pytest.raises(InvalidSymbolError):
            normalize_symbol(symbol)


class TestPurchaseLot:
    def test_converts_values_to_decimal(self):
        lot = PurchaseLot(uuid4(), date(2024, 1, 2), 10, "99.95")

        assert lot.quantity == Decimal("10")
        assert lot.unit_price == Decimal("99.95")
        assert lot.cost == Decimal("999.50")

    def test_ids_are_unique(self):
        asset_id = uuid4()

        first = PurchaseLot(asset_id, date(2024, 1, 2), 1, 1)
        second = PurchaseLot(asset_id, date(2024, 1, 2), 1, 1)

        assert first.id != second.id

    @pytest.mark.parametrize(
        ("quantity", "unit_price", "error"),
        [
            (0, 10, InvalidQuantityError),
            (-1, 10, InvalidQuantityError),
            (1, -10, InvalidPriceError),
            (1.0, 10, InvalidAmountError),
        ],
    )
    def test_invalid_values(self, quantity, unit_price, error):
        with pytest.raises(error):
            PurchaseLot(uuid4(), date(2024, 1, 2), quantity, unit_price)

    @pytest.mark.parametrize("settle_date", ["2024-01-02", None, datetime(2024, 1, 2)])
    def test_invalid_date(self, settle_date):
        with pytest.raises(InvalidDateError):
            PurchaseLot(uuid4(), settle_date, 1, 1)

    def test_with_quantity_keeps_identity(self):
        lot = PurchaseLot(uuid4(), date(2024, 1, 2), 10, 100)

        smaller = lot.with_quantity(Decimal("4"))

        assert smaller.id == lot.id
        assert smaller.created_at == lot.created_at
        assert smaller.quantity == Decimal("4")
        assert lot.quantity == Decimal("10")

    def test_is_immutable(self):
        lot = PurchaseLot(uuid4(), date(2024, 1, 2), 10, 100)

        with pytest.raises(FrozenInstanceError):
            lot.quantity = Decimal("1")


class TestSaleRecord:
    def test_proceeds(self):
        sale = SaleRecord(uuid4(), date(2024, 2, 1), "2.5", 40)

        assert sale.proceeds == Decimal("100.0")

    def test_zero_quantity_rejected(self):
        with pytest.raises(InvalidQuantityError):
            SaleRecord(uuid4(), date(2024, 2, 1), 0, 40)


class TestAsset:
    def test_aggregates_over_loaded_activity(self):
        asset = Asset("AAPL")
        lots = (
            PurchaseLot(asset.id, date(2024, 3, 1), 2, 110),
            PurchaseLot(asset.id, date(2024, 1, 1), 10, 100),
        )
        sales = (SaleRecord(asset.id, date(2024, 4, 1), 3, 120),)

        loaded = asset.with_activity(lots, sales)

        assert [lot.settle_date for lot in loaded.purchase_lots] == [
            date(2024, 1, 1),
            date(2024, 3, 1),
        ]
        assert loaded.outstanding_quantity == Decimal("12")
        assert loaded.outstanding_cost == Decimal("1220")
        assert loaded.sold_quantity == Decimal("3")
        assert loaded.id == asset.id
        assert asset.purchase_lots == ()

    def test_symbol_is_normalized(self):
        assert Asset(" MSFT ").symbol == "MSFT"

    def test_blank_symbol_rejected(self):
        with pytest.raises(InvalidSymbolError):
            Asset("")


class TestPlanActions:
    @pytest.fixture
    def lot(self) -> PurchaseLot:
        return PurchaseLot(uuid4(), date(2024, 1, 2), 10, 100)

    def test_delete_consumes_whole_lot(self, lot):
        action = DeleteLot(lot, Decimal("50"))

        assert action.action_type == PlanActionType.DELETE
        assert action.consumed_quantity == Decimal("10")
        assert action.resulting_quantity == Decimal("0")
        assert action.normalized() is action

    def test_update_consumes_difference(self, lot):
        action = UpdateLot(lot, Decimal("4"), Decimal("120"))

        assert action.action_type == PlanActionType.UPDATE
        assert action.consumed_quantity == Decimal("6")
        assert action.resulting_quantity == Decimal("4")
        assert action.normalized() is action

    def test_update_to_zero_normalizes_to_delete(self, lot):
        action = UpdateLot(lot, Decimal("0"), Decimal("500"))

        assert action.normalized() == DeleteLot(lot, Decimal("500"))

    @pytest.mark.parametrize("new_quantity", [Decimal("-1"), Decimal("10.01")])
    def test_update_outside_lot_rejected(self, lot, new_quantity):
        with pytest.raises(InvalidQuantityError):
            UpdateLot(lot, new_quantity)


class TestPosition:
    def test_new_position_is_empty(self):
        position = Position.new()

        assert len(position) == 0
        assert position.get("AAPL") is None
        assert "AAPL" not in position

    def test_with_asset_returns_new_position(self):
        empty = Position.new()
        aapl = Asset("AAPL")

        position = empty.with_asset(aapl)

        assert position.get("AAPL") is aapl
        assert "AAPL" in position
        assert len(empty) == 0

    def test_with_asset_replaces_only_that_symbol(self):
        aapl = Asset("AAPL")
        msft = Asset("MSFT")
        position = Position.new().with_asset(aapl).with_asset(msft)

        updated = position.with_asset(aapl.with_activity(
            (PurchaseLot(aapl.id, date(2024, 1, 2), 1, 1),), ()
        ))

        assert len(updated) == 2
        assert updated.get("MSFT") is msft
        assert len(updated.get("AAPL").purchase_lots) == 1
        assert position.get("AAPL") is aapl
        assert list(updated) == [updated.get("AAPL"), msft]

    def test_assets_mapping_is_read_only(self):
        position = Position.new().with_asset(Asset("AAPL"))

        with pytest.raises(TypeError):
            position.assets["MSFT"] = Asset("MSFT")

    def test_position_copies_the_mapping_it_is_given(self):
        assets = {"AAPL": Asset("AAPL")}
        position = Position(assets)

        assets["MSFT"] = Asset("MSFT")

        assert position.symbols == ("AAPL",)
