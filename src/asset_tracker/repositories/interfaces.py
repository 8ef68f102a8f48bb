from abc import ABC, abstractmethod
from collections.abc import Sequence
from contextlib import AbstractContextManager
from datetime import date
from decimal import Decimal
from uuid import UUID

from asset_tracker.domain.assets import Asset, PurchaseLot, SaleRecord


class LedgerStore(ABC):
    """Persistence boundary for assets, purchase lots and sale records.

    Methods return the stored value or raise an ``AssetTrackerError``
    subclass. Implementations do not lock: callers must serialize writes
    that touch the same asset's lots.
    """

    @abstractmethod
    def get_or_create_asset(self, symbol: str) -> Asset:
        pass

    @abstractmethod
    def get_asset(self, asset_id: UUID) -> Asset | None:
        pass

    @abstractmethod
    def get_asset_by_symbol(self, symbol: str) -> Asset | None:
        pass

    @abstractmethod
    def list_purchase_lots(self, asset_id: UUID) -> Sequence[PurchaseLot]:
        """Lots for the asset in ascending settle date, ties in insertion order."""

    @abstractmethod
    def get_purchase_lot(self, lot_id: UUID) -> PurchaseLot | None:
        pass

    @abstractmethod
    def create_purchase_lot(
        self,
        asset_id: UUID,
        settle_date: date,
        quantity: Decimal,
        unit_price: Decimal,
    ) -> PurchaseLot:
        pass

    @abstractmethod
    def update_purchase_lot_quantity(
        self, lot_id: UUID, new_quantity: Decimal
    ) -> PurchaseLot:
        pass

    @abstractmethod
    def delete_purchase_lot(self, lot_id: UUID) -> None:
        pass

    @abstractmethod
    def sum_outstanding_quantity(self, asset_id: UUID) -> Decimal:
        pass

    @abstractmethod
    def sum_outstanding_cost(self, asset_id: UUID) -> Decimal:
        """Sum of quantity * unit_price over the asset's open lots."""

    @abstractmethod
    def create_sale_record(
        self,
        asset_id: UUID,
        sell_date: date,
        quantity: Decimal,
        unit_price: Decimal,
    ) -> SaleRecord:
        pass

    @abstractmethod
    def list_sale_records(self, asset_id: UUID) -> Sequence[SaleRecord]:
        pass

    @abstractmethod
    def sum_sold_quantity(self, asset_id: UUID) -> Decimal:
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Group writes so that an exception inside the block undoes them all."""

    def load_asset(self, asset_id: UUID) -> Asset | None:
        """Return the asset with its lots and sales loaded."""
        asset = self.get_asset(asset_id)
        if asset is None:
            return None
        return asset.with_activity(
            tuple(self.list_purchase_lots(asset_id)),
            tuple(self.list_sale_records(asset_id)),
        )

    def close(self) -> None:
        pass

