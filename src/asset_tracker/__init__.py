from asset_tracker.domain.assets import Asset, PurchaseLot, SaleRecord
from asset_tracker.domain.plans import DeleteLot, UpdateLot
from asset_tracker.domain.positions import Position
from asset_tracker.services.fifo import FifoMatcher
from asset_tracker.services.interfaces import MatchResult, OutcomeStatus, TrackerOutcome
from asset_tracker.services.plan_application import PlanApplier
from asset_tracker.services.position_tracker import PositionTracker

__all__ = [
    "Asset",
    "DeleteLot",
    "FifoMatcher",
    "MatchResult",
    "OutcomeStatus",
    "PlanApplier",
    "Position",
    "PositionTracker",
    "PurchaseLot",
    "SaleRecord",
    "TrackerOutcome",
    "UpdateLot",
]

__version__ = "0.1.0"
