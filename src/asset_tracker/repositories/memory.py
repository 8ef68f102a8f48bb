"""In-memory implementation of the ledger store."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from uuid import UUID

from asset_tracker.domain.arithmetic import total
from asset_tracker.domain.assets import (
    Asset,
    PurchaseLot,
    SaleRecord,
    normalize_symbol,
    validate_quantity,
)
from asset_tracker.exceptions import AssetNotFoundError, PurchaseLotNotFoundError
from asset_tracker.logging_config import get_logger
from asset_tracker.repositories.interfaces import LedgerStore

logger = get_logger(__name__)


class InMemoryLedgerStore(LedgerStore):
    """Dictionary-backed store, mostly for tests and short-lived sessions."""

    def __init__(self) -> None:
        self._assets: dict[UUID, Asset] = {}
        self._asset_ids_by_symbol: dict[str, UUID] = {}
        self._lots: dict[UUID, PurchaseLot] = {}
        self._sales: dict[UUID, SaleRecord] = {}

    def get_or_create_asset(self, symbol: str) -> Asset:
        symbol = normalize_symbol(symbol)
        existing = self.get_asset_by_symbol(symbol)
        if existing is not None:
            return existing

        asset = Asset(symbol=symbol)
        self._assets[asset.id] = asset
        self._asset_ids_by_symbol[symbol] = asset.id
        logger.info("asset_created", symbol=symbol, asset_id=str(asset.id))
        return asset

    def get_asset(self, asset_id: UUID) -> Asset | None:
        return self._assets.get(asset_id)

    def get_asset_by_symbol(self, symbol: str) -> Asset | None:
        asset_id = self._asset_ids_by_symbol.get(symbol)
        if asset_id is None:
            return None
        return self._assets[asset_id]

    def list_purchase_lots(self, asset_id: UUID) -> Sequence[PurchaseLot]:
        lots = [lot for lot in self._lots.values() if lot.asset_id == asset_id]
        # dicts keep insertion order, and sorted() is stable
        return sorted(lots, key=lambda lot: lot.settle_date)

    def get_purchase_lot(self, lot_id: UUID) -> PurchaseLot | None:
        return self._lots.get(lot_id)

    def create_purchase_lot(
        self,
        asset_id: UUID,
        settle_date: date,
        quantity: Decimal,
        unit_price: Decimal,
    ) -> PurchaseLot:
        self._require_asset(asset_id)
        lot = PurchaseLot(
            asset_id=asset_id,
            settle_date=settle_date,
            quantity=quantity,
            unit_price=unit_price,
        )
        self._lots[lot.id] = lot
        return lot

    def update_purchase_lot_quantity(
        self, lot_id: UUID, new_quantity: Decimal
    ) -> PurchaseLot:
        lot = self._lots.get(lot_id)
        if lot is None:
            raise PurchaseLotNotFoundError(lot_id)
        updated = lot.with_quantity(validate_quantity(new_quantity))
        self._lots[lot_id] = updated
        return updated

    def delete_purchase_lot(self, lot_id: UUID) -> None:
        if self._lots.pop(lot_id, None) is None:
            raise PurchaseLotNotFoundError(lot_id)

    def sum_outstanding_quantity(self, asset_id: UUID) -> Decimal:
        return total(lot.quantity for lot in self.list_purchase_lots(asset_id))

    def sum_outstanding_cost(self, asset_id: UUID) -> Decimal:
        return total(lot.cost for lot in self.list_purchase_lots(asset_id))

    def create_sale_record(
        self,
        asset_id: UUID,
        sell_date: date,
        quantity: Decimal,
        unit_price: Decimal,
    ) -> SaleRecord:
        self._require_asset(asset_id)
        sale = SaleRecord(
            asset_id=asset_id,
            sell_date=sell_date,
            quantity=quantity,
            unit_price=unit_price,
        )
        self._sales[sale.id] = sale
        return sale

    def list_sale_records(self, asset_id: UUID) -> Sequence[SaleRecord]:
        sales = [sale for sale in self._sales.values() if sale.asset_id == asset_id]
        return sorted(sales, key=lambda sale: sale.sell_date)

    def sum_sold_quantity(self, asset_id: UUID) -> Decimal:
        return total(sale.quantity for sale in self.list_sale_records(asset_id))

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshot = (
            dict(self._assets),
            dict(self._asset_ids_by_symbol),
            dict(self._lots),
            dict(self._sales),
        )
        try:
            yield
        except BaseException:
            (
                self._assets,
                self._asset_ids_by_symbol,
                self._lots,
                self._sales,
            ) = snapshot
            raise

    def _require_asset(self, asset_id: UUID) -> None:
        if asset_id not in self._assets:
            raise AssetNotFoundError(asset_id)
