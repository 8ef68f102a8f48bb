from asset_tracker.services.fifo import FifoMatcher, calculate_gain_or_loss
from asset_tracker.services.interfaces import (
    LotMatchingService,
    MatchResult,
    OutcomeStatus,
    PlanApplication,
    TrackerOutcome,
)
from asset_tracker.services.plan_application import PlanApplier
from asset_tracker.services.position_tracker import PositionTracker

__all__ = [
    "FifoMatcher",
    "LotMatchingService",
    "MatchResult",
    "OutcomeStatus",
    "PlanApplication",
    "PlanApplier",
    "PositionTracker",
    "TrackerOutcome",
    "calculate_gain_or_loss",
]
