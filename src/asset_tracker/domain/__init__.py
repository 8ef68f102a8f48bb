from asset_tracker.domain.assets import Asset, PurchaseLot, SaleRecord
from asset_tracker.domain.plans import (
    ConsumptionPlan,
    DeleteLot,
    PlanAction,
    PlanActionType,
    UpdateLot,
)
from asset_tracker.domain.positions import Position

__all__ = [
    "Asset",
    "ConsumptionPlan",
    "DeleteLot",
    "PlanAction",
    "PlanActionType",
    "Position",
    "PurchaseLot",
    "SaleRecord",
    "UpdateLot",
]
