"""Position tracking: purchases, FIFO sales and unrealized gain or loss.

The tracker does no locking of its own. Callers that record purchases or
sales for the same symbol from several threads or workers must serialize
those calls themselves (one worker per symbol, or a per-symbol lock held
around the call); otherwise two sales can consume the same lots.
"""

from datetime import date
from decimal import Decimal

from asset_tracker.domain.arithmetic import (
    DEFAULT_DIVISION_PRECISION,
    ZERO,
    div,
    mul,
    sub,
    to_decimal,
)
from asset_tracker.domain.assets import (
    Asset,
    normalize_symbol,
    validate_quantity,
    validate_trade_date,
    validate_unit_price,
)
from asset_tracker.domain.positions import Position
from asset_tracker.exceptions import (
    AssetNotFoundError,
    InvalidAmountError,
    InvalidPriceError,
    NoOutstandingQuantityError,
    ValidationError,
)
from asset_tracker.logging_config import LogContext, asset_context, get_logger
from asset_tracker.repositories.interfaces import LedgerStore
from asset_tracker.services.fifo import FifoMatcher
from asset_tracker.services.interfaces import (
    LotMatchingService,
    OutcomeStatus,
    TrackerOutcome,
)
from asset_tracker.services.plan_application import PlanApplier

logger = get_logger(__name__)


def _entry_amount(value: object) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, int | Decimal):
        raise InvalidAmountError(value, "must be an int or a Decimal")
    return to_decimal(value)


def _validate_entry(
    symbol: object, trade_date: object, quantity: object, unit_price: object
) -> tuple[str, date, Decimal, Decimal]:
    """Validate one purchase or sale request.

    Stricter than the store-level checks: quantity and price must arrive as
    int or Decimal, and the price must be positive.
    """
    symbol = normalize_symbol(symbol)
    trade_date = validate_trade_date(trade_date)
    quantity = validate_quantity(_entry_amount(quantity))
    price = _entry_amount(unit_price)
    if price <= ZERO:
        raise InvalidPriceError(unit_price, "must be positive")
    return symbol, trade_date, quantity, price


class PositionTracker:
    """Records purchases and sales against a ledger store.

    Purchase and sale entry points fail soft: malformed input produces a
    rejected outcome holding the caller's position unchanged. A plan that
    cannot be committed raises PlanApplicationError.
    """

    def __init__(
        self,
        store: LedgerStore,
        matcher: LotMatchingService | None = None,
        applier: PlanApplier | None = None,
        *,
        division_precision: int = DEFAULT_DIVISION_PRECISION,
    ) -> None:
        self._store = store
        self._matcher = matcher or FifoMatcher()
        self._applier = applier or PlanApplier(store)
        self._division_precision = division_precision

    def get_or_create_asset(self, symbol: str) -> Asset:
        """Returns the stored asset for symbol, creating it on first use.

        Raises:
            InvalidSymbolError: If symbol is not a non-empty string.
        """
        return self._store.get_or_create_asset(normalize_symbol(symbol))

    def record_purchase(
        self,
        position: Position,
        symbol: str,
        settle_date: date,
        quantity: Decimal | int,
        unit_price: Decimal | int,
    ) -> TrackerOutcome:
        """Stores a new purchase lot and returns the refreshed position."""
        try:
            symbol, settle_date, lot_quantity, lot_price = _validate_entry(
                symbol, settle_date, quantity, unit_price
            )
        except ValidationError as e:
            logger.warning("purchase_rejected", symbol=repr(symbol), error=e.error_code)
            return TrackerOutcome(OutcomeStatus.REJECTED, position, reason=e)

        asset = self._resolve_asset(position, symbol)
        with LogContext(**asset_context(asset.symbol, asset.id)):
            lot = self._store.create_purchase_lot(
                asset.id, settle_date, lot_quantity, lot_price
            )
            logger.info(
                "purchase_recorded",
                lot_id=str(lot.id),
                quantity=str(lot.quantity),
                unit_price=str(lot.unit_price),
            )
        return TrackerOutcome(
            OutcomeStatus.APPLIED, self._refreshed(position, asset), lot=lot
        )

    def add_purchase(
        self,
        position: Position,
        symbol: str,
        settle_date: date,
        quantity: Decimal | int,
        unit_price: Decimal | int,
    ) -> Position:
        """Like record_purchase, returning only the position.

        Invalid input returns the position that was passed in.
        """
        return self.record_purchase(
            position, symbol, settle_date, quantity, unit_price
        ).position

    def record_sale(
        self,
        position: Position,
        symbol: str,
        sell_date: date,
        quantity: Decimal | int,
        unit_price: Decimal | int,
    ) -> TrackerOutcome:
        """Consumes lots FIFO for a sale and stores the matched sale record.

        The sale record holds the matched quantity only. When no lot could
        cover any of the sale, no sale record is written.

        Raises:
            PlanApplicationError: If the store rejected part of the plan.
        """
        try:
            symbol, sell_date, sale_quantity, sale_price = _validate_entry(
                symbol, sell_date, quantity, unit_price
            )
        except ValidationError as e:
            logger.warning("sale_rejected", symbol=repr(symbol), error=e.error_code)
            return TrackerOutcome(OutcomeStatus.REJECTED, position, reason=e)

        asset = self._resolve_asset(position, symbol)
        with LogContext(**asset_context(asset.symbol, asset.id)):
            lots = sorted(
                self._store.list_purchase_lots(asset.id),
                key=lambda lot: lot.settle_date,
            )
            result = self._matcher.match(lots, sale_quantity, sale_price)
            self._applier.apply(result.plan)

            sale = None
            if result.matched_quantity > ZERO:
                sale = self._store.create_sale_record(
                    asset.id, sell_date, result.matched_quantity, sale_price
                )
            if not result.is_fully_matched:
                logger.warning(
                    "sale_unmatched_quantity",
                    requested_quantity=str(sale_quantity),
                    unmatched_quantity=str(result.remaining_quantity),
                )

            logger.info(
                "sale_recorded",
                matched_quantity=str(result.matched_quantity),
                lots_consumed=len(result.plan),
                realized_gain_or_loss=str(result.realized_gain_or_loss),
            )
        return TrackerOutcome(
            OutcomeStatus.APPLIED,
            self._refreshed(position, asset),
            realized_gain_or_loss=result.realized_gain_or_loss,
            unmatched_quantity=result.remaining_quantity,
            sale=sale,
        )

    def add_sale(
        self,
        position: Position,
        symbol: str,
        sell_date: date,
        quantity: Decimal | int,
        unit_price: Decimal | int,
    ) -> tuple[Position, Decimal]:
        """Like record_sale, returning the position and realized gain or loss.

        Invalid input returns the position that was passed in and zero.
        """
        outcome = self.record_sale(position, symbol, sell_date, quantity, unit_price)
        return outcome.position, outcome.realized_gain_or_loss

    def unrealized_gain_or_loss(
        self, position: Position, symbol: str, market_price: Decimal | int
    ) -> Decimal:
        """Gain or loss if every open lot were sold at market_price.

        Equal to (market price - average cost) * outstanding quantity,
        computed as market value minus outstanding cost so no division
        rounds the result.

        Raises:
            AssetNotFoundError: If the symbol has never been recorded.
            NoOutstandingQuantityError: If the asset has no open lots.
        """
        asset = self._find_asset(position, symbol)
        price = validate_unit_price(market_price)
        quantity = self._store.sum_outstanding_quantity(asset.id)
        if quantity == ZERO:
            raise NoOutstandingQuantityError(asset.symbol)
        cost = self._store.sum_outstanding_cost(asset.id)
        return sub(mul(price, quantity), cost)

    def average_cost(self, position: Position, symbol: str) -> Decimal:
        """Outstanding cost divided by outstanding quantity."""
        asset = self._find_asset(position, symbol)
        quantity = self._store.sum_outstanding_quantity(asset.id)
        if quantity == ZERO:
            raise NoOutstandingQuantityError(asset.symbol)
        cost = self._store.sum_outstanding_cost(asset.id)
        return div(cost, quantity, self._division_precision)

    def total_sold_quantity(self, position: Position, symbol: str) -> Decimal:
        asset = self._find_asset(position, symbol)
        return self._store.sum_sold_quantity(asset.id)

    def refresh(self, position: Position, symbol: str) -> Position:
        """Reload one asset from the store into a new position."""
        return self._refreshed(position, self._find_asset(position, symbol))

    def _resolve_asset(self, position: Position, symbol: str) -> Asset:
        asset = position.get(symbol)
        if asset is not None:
            return asset
        return self._store.get_or_create_asset(symbol)

    def _find_asset(self, position: Position, symbol: str) -> Asset:
        symbol = normalize_symbol(symbol)
        asset = position.get(symbol) or self._store.get_asset_by_symbol(symbol)
        if asset is None:
            raise AssetNotFoundError(symbol)
        return asset

    def _refreshed(self, position: Position, asset: Asset) -> Position:
        loaded = self._store.load_asset(asset.id)
        if loaded is None:
            raise AssetNotFoundError(asset.id)
        return position.with_asset(loaded)
