from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from asset_tracker.domain.arithmetic import ZERO, sub
from asset_tracker.domain.assets import PurchaseLot, SaleRecord
from asset_tracker.domain.plans import ConsumptionPlan, DeleteLot, UpdateLot
from asset_tracker.domain.positions import Position
from asset_tracker.exceptions import ValidationError


@dataclass(frozen=True)
class MatchResult:
    requested_quantity: Decimal
    remaining_quantity: Decimal
    realized_gain_or_loss: Decimal
    plan: ConsumptionPlan

    @property
    def matched_quantity(self) -> Decimal:
        return sub(self.requested_quantity, self.remaining_quantity)

    @property
    def is_fully_matched(self) -> bool:
        return self.remaining_quantity == ZERO

    def __iter__(self):
        # Unpacks as (remaining, gain, plan).
        return iter((self.remaining_quantity, self.realized_gain_or_loss, self.plan))


@dataclass(frozen=True)
class PlanApplication:
    applied: ConsumptionPlan

    @property
    def deleted_count(self) -> int:
        return sum(1 for action in self.applied if isinstance(action, DeleteLot))

    @property
    def updated_count(self) -> int:
        return sum(1 for action in self.applied if isinstance(action, UpdateLot))


class OutcomeStatus(str, Enum):
    APPLIED = "applied"
    REJECTED = "rejected"


@dataclass(frozen=True)
class TrackerOutcome:
    """Result of a purchase or sale entry.

    A rejected outcome carries the caller's position unchanged together
    with the validation error that caused the rejection.
    """

    status: OutcomeStatus
    position: Position
    realized_gain_or_loss: Decimal = ZERO
    unmatched_quantity: Decimal = ZERO
    lot: PurchaseLot | None = None
    sale: SaleRecord | None = None
    reason: ValidationError | None = None

    @property
    def is_applied(self) -> bool:
        return self.status == OutcomeStatus.APPLIED

    @property
    def is_rejected(self) -> bool:
        return self.status == OutcomeStatus.REJECTED


class LotMatchingService(ABC):
    @abstractmethod
    def match(
        self,
        purchase_lots: Sequence[PurchaseLot],
        sale_quantity: Decimal,
        sale_unit_price: Decimal,
    ) -> MatchResult:
        pass
