"""FIFO lot matching: consumes the oldest purchase lots first."""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from asset_tracker.domain.arithmetic import ZERO, add, compare, mul, sub, to_decimal
from asset_tracker.domain.assets import PurchaseLot
from asset_tracker.domain.plans import DeleteLot, PlanAction, UpdateLot
from asset_tracker.exceptions import InvalidPriceError, InvalidQuantityError, LotOrderError
from asset_tracker.logging_config import get_logger
from asset_tracker.services.interfaces import LotMatchingService, MatchResult

logger = get_logger(__name__)


def calculate_gain_or_loss(
    purchase_price: Decimal, sell_price: Decimal, quantity: Decimal
) -> Decimal:
    """(sell price - purchase price) * quantity"""
    return mul(sub(sell_price, purchase_price), quantity)


class FifoMatcher(LotMatchingService):
    """Matches a sale against purchase lots, oldest first.

    Matching is pure: it reads the lots it is given and returns a
    consumption plan without touching any store. The loop is iterative
    and stops at the first lot that covers what is left of the sale, so
    only the lots actually consumed are visited.
    """

    def match(
        self,
        purchase_lots: Sequence[PurchaseLot],
        sale_quantity: Decimal,
        sale_unit_price: Decimal,
    ) -> MatchResult:
        """Compute the consumption plan and realized gain for one sale.

        Args:
            purchase_lots: Lots ordered by settle date, oldest first.
            sale_quantity: Quantity sold; must be positive.
            sale_unit_price: Price per unit received; must not be negative.

        Returns:
            MatchResult with the quantity no lot could cover, the realized
            gain or loss summed in lot order, and one action per lot touched.

        Raises:
            InvalidQuantityError: If sale_quantity is not positive.
            InvalidPriceError: If sale_unit_price is negative.
            LotOrderError: If a consumed lot settled before its predecessor.
        """
        quantity = to_decimal(sale_quantity)
        if quantity <= ZERO:
            raise InvalidQuantityError(sale_quantity)
        price = to_decimal(sale_unit_price)
        if price < ZERO:
            raise InvalidPriceError(sale_unit_price)

        remaining = quantity
        gain_or_loss = ZERO
        plan: list[PlanAction] = []
        previous_date: date | None = None

        for lot in purchase_lots:
            if remaining == ZERO:
                break
            if previous_date is not None and lot.settle_date < previous_date:
                raise LotOrderError(
                    lot.id, lot.settle_date.isoformat(), previous_date.isoformat()
                )
            previous_date = lot.settle_date

            if compare(lot.quantity, remaining) < 0:
                slice_gain = calculate_gain_or_loss(lot.unit_price, price, lot.quantity)
                plan.append(DeleteLot(lot, slice_gain))
                remaining = sub(remaining, lot.quantity)
            else:
                slice_gain = calculate_gain_or_loss(lot.unit_price, price, remaining)
                action = UpdateLot(lot, sub(lot.quantity, remaining), slice_gain)
                plan.append(action.normalized())
                remaining = ZERO

            gain_or_loss = add(gain_or_loss, slice_gain)

        logger.debug(
            "fifo_match_completed",
            lots_touched=len(plan),
            requested_quantity=str(quantity),
            remaining_quantity=str(remaining),
            realized_gain_or_loss=str(gain_or_loss),
        )
        return MatchResult(
            requested_quantity=quantity,
            remaining_quantity=remaining,
            realized_gain_or_loss=gain_or_loss,
            plan=tuple(plan),
        )
