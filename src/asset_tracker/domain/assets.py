from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from asset_tracker.domain.arithmetic import ZERO, mul, to_decimal, total
from asset_tracker.exceptions import (
    InvalidDateError,
    InvalidPriceError,
    InvalidQuantityError,
    InvalidSymbolError,
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def normalize_symbol(symbol: object) -> str:
    """Return the stripped symbol, rejecting non-strings and blanks."""
    if not isinstance(symbol, str) or not symbol.strip():
        raise InvalidSymbolError(symbol)
    return symbol.strip()


def validate_trade_date(value: object) -> date:
    # datetime is a date subclass, but lots settle on whole days
    if isinstance(value, datetime) or not isinstance(value, date):
        raise InvalidDateError(value)
    return value


def validate_quantity(quantity: object) -> Decimal:
    value = to_decimal(quantity)
    if value <= ZERO:
        raise InvalidQuantityError(quantity)
    return value


def validate_unit_price(unit_price: object) -> Decimal:
    value = to_decimal(unit_price)
    if value < ZERO:
        raise InvalidPriceError(unit_price)
    return value


@dataclass(frozen=True, slots=True)
class PurchaseLot:
    asset_id: UUID
    settle_date: date
    quantity: Decimal
    unit_price: Decimal
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        validate_trade_date(self.settle_date)
        object.__setattr__(self, "quantity", validate_quantity(self.quantity))
        object.__setattr__(self, "unit_price", validate_unit_price(self.unit_price))

    @property
    def cost(self) -> Decimal:
        return mul(self.quantity, self.unit_price)

    def with_quantity(self, quantity: Decimal) -> "PurchaseLot":
        """Return a copy of this lot holding ``quantity`` instead."""
        return PurchaseLot(
            asset_id=self.asset_id,
            settle_date=self.settle_date,
            quantity=quantity,
            unit_price=self.unit_price,
            id=self.id,
            created_at=self.created_at,
        )


@dataclass(frozen=True, slots=True)
class SaleRecord:
    asset_id: UUID
    sell_date: date
    quantity: Decimal
    unit_price: Decimal
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        validate_trade_date(self.sell_date)
        object.__setattr__(self, "quantity", validate_quantity(self.quantity))
        object.__setattr__(self, "unit_price", validate_unit_price(self.unit_price))

    @property
    def proceeds(self) -> Decimal:
        return mul(self.quantity, self.unit_price)


@dataclass(frozen=True, slots=True)
class Asset:
    """A tradable instrument with the lots and sales loaded for it."""

    symbol: str
    id: UUID = field(default_factory=uuid4)
    purchase_lots: tuple[PurchaseLot, ...] = ()
    sales: tuple[SaleRecord, ...] = ()
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))

    @property
    def outstanding_quantity(self) -> Decimal:
        return total(lot.quantity for lot in self.purchase_lots)

    @property
    def outstanding_cost(self) -> Decimal:
        return total(lot.cost for lot in self.purchase_lots)

    @property
    def sold_quantity(self) -> Decimal:
        return total(sale.quantity for sale in self.sales)

    def with_activity(
        self,
        purchase_lots: tuple[PurchaseLot, ...],
        sales: tuple[SaleRecord, ...],
    ) -> "Asset":
        """Return a copy carrying freshly loaded lots and sales."""
        return Asset(
            symbol=self.symbol,
            id=self.id,
            purchase_lots=tuple(sorted(purchase_lots, key=lambda lot: lot.settle_date)),
            sales=tuple(sorted(sales, key=lambda sale: sale.sell_date)),
            created_at=self.created_at,
        )
