"""Consumption plan actions produced by FIFO matching."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from asset_tracker.domain.arithmetic import ZERO, sub
from asset_tracker.domain.assets import PurchaseLot
from asset_tracker.exceptions import InvalidQuantityError


class PlanActionType(str, Enum):
    DELETE = "delete"
    UPDATE = "update"


@dataclass(frozen=True, slots=True)
class DeleteLot:
    lot: PurchaseLot
    realized_gain_or_loss: Decimal = ZERO

    action_type = PlanActionType.DELETE

    @property
    def consumed_quantity(self) -> Decimal:
        return self.lot.quantity

    @property
    def resulting_quantity(self) -> Decimal:
        return ZERO

    def normalized(self) -> "DeleteLot":
        return self


@dataclass(frozen=True, slots=True)
class UpdateLot:
    lot: PurchaseLot
    new_quantity: Decimal
    realized_gain_or_loss: Decimal = ZERO

    action_type = PlanActionType.UPDATE

    def __post_init__(self) -> None:
        if self.new_quantity < ZERO:
            raise InvalidQuantityError(
                self.new_quantity, "a lot cannot be reduced below zero"
            )
        if self.new_quantity > self.lot.quantity:
            raise InvalidQuantityError(
                self.new_quantity, "consumption cannot grow a lot"
            )

    @property
    def consumed_quantity(self) -> Decimal:
        return sub(self.lot.quantity, self.new_quantity)

    @property
    def resulting_quantity(self) -> Decimal:
        return self.new_quantity

    def normalized(self) -> "DeleteLot | UpdateLot":
        """Turn an update that empties the lot into a deletion."""
        if self.new_quantity == ZERO:
            return DeleteLot(self.lot, self.realized_gain_or_loss)
        return self


PlanAction = DeleteLot | UpdateLot

ConsumptionPlan = tuple[PlanAction, ...]
