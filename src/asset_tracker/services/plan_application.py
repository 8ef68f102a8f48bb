"""Applies FIFO consumption plans to the ledger store."""

from asset_tracker.domain.plans import ConsumptionPlan, DeleteLot, PlanAction
from asset_tracker.exceptions import AssetTrackerError, PlanApplicationError
from asset_tracker.logging_config import LogContext, get_logger
from asset_tracker.repositories.interfaces import LedgerStore
from asset_tracker.services.interfaces import PlanApplication

logger = get_logger(__name__)


class PlanApplier:
    """Commits each action of a consumption plan, in plan order.

    With ``atomic=True`` the plan runs inside ``store.atomic()``: the first
    failing action aborts the plan and the store undoes the actions before
    it. With ``atomic=False`` every action is attempted, failures are
    collected, and actions that succeeded stay applied.

    Either way a failure surfaces as a single PlanApplicationError.
    """

    def __init__(self, store: LedgerStore, *, atomic: bool = True) -> None:
        self._store = store
        self._atomic = atomic

    @property
    def atomic(self) -> bool:
        return self._atomic

    def apply(self, plan: ConsumptionPlan) -> PlanApplication:
        actions = tuple(action.normalized() for action in plan)
        if not actions:
            return PlanApplication(applied=())
        with LogContext(asset_id=str(actions[0].lot.asset_id)):
            if self._atomic:
                return self._apply_atomically(actions)
            return self._apply_each(actions)

    def _apply_action(self, action: PlanAction) -> None:
        if isinstance(action, DeleteLot):
            self._store.delete_purchase_lot(action.lot.id)
        else:
            self._store.update_purchase_lot_quantity(action.lot.id, action.new_quantity)

    def _apply_each(self, actions: ConsumptionPlan) -> PlanApplication:
        applied: list[PlanAction] = []
        failures: list[tuple[PlanAction, AssetTrackerError]] = []

        for action in actions:
            try:
                self._apply_action(action)
            except AssetTrackerError as e:
                logger.warning(
                    "plan_action_failed",
                    action=action.action_type.value,
                    lot_id=str(action.lot.id),
                    error=e.error_code,
                )
                failures.append((action, e))
                continue
            applied.append(action)

        if failures:
            logger.error(
                "plan_partially_applied",
                total_count=len(actions),
                applied_count=len(applied),
                failed_count=len(failures),
            )
            raise PlanApplicationError(len(actions), len(applied), failures)

        logger.info("plan_applied", action_count=len(applied))
        return PlanApplication(applied=tuple(applied))

    def _apply_atomically(self, actions: ConsumptionPlan) -> PlanApplication:
        applied_count = 0
        try:
            with self._store.atomic():
                for action in actions:
                    self._apply_action(action)
                    applied_count += 1
        except AssetTrackerError as e:
            # Every action ran when the failure came from the commit itself.
            failed = actions[applied_count] if applied_count < len(actions) else None
            logger.error(
                "plan_rolled_back",
                total_count=len(actions),
                failed_action=failed.action_type.value if failed else "commit",
                lot_id=str(failed.lot.id) if failed else None,
                error=e.error_code,
            )
            raise PlanApplicationError(
                len(actions), 0, [(failed, e)], rolled_back=True
            ) from e

        logger.info("plan_applied", action_count=len(actions))
        return PlanApplication(applied=actions)
