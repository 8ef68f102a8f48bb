"""Domain exception hierarchy for Asset Tracker.

All domain-specific exceptions inherit from AssetTrackerError.
This allows catching all application errors with a single base class
while preserving specificity for individual error types.
"""

from typing import Any
from uuid import UUID


class AssetTrackerError(Exception):
    """Base exception for all Asset Tracker errors.

    Includes an error_code for machine-readable handling and extra context.
    """

    error_code: str = "ASSET_TRACKER_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a plain dictionary."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(AssetTrackerError):
    """Base exception for malformed symbols, quantities and prices."""

    error_code = "VALIDATION_ERROR"


class InvalidSymbolError(ValidationError):
    """Raised when an asset symbol is empty or not a string."""

    error_code = "INVALID_SYMBOL"

    def __init__(self, symbol: object) -> None:
        super().__init__(
            f"Invalid asset symbol: {symbol!r}",
            context={"symbol": repr(symbol)},
        )


class InvalidAmountError(ValidationError):
    """Raised when a value cannot be used as an exact decimal amount."""

    error_code = "INVALID_AMOUNT"

    def __init__(self, amount: object, reason: str) -> None:
        super().__init__(
            f"Invalid amount {amount!r}: {reason}",
            context={"amount": repr(amount), "reason": reason},
        )


class InvalidQuantityError(ValidationError):
    """Raised when a quantity is not strictly positive."""

    error_code = "INVALID_QUANTITY"

    def __init__(self, quantity: object, reason: str = "must be positive") -> None:
        super().__init__(
            f"Invalid quantity {quantity!r}: {reason}",
            context={"quantity": repr(quantity), "reason": reason},
        )


class InvalidPriceError(ValidationError):
    """Raised when a unit price is negative or malformed."""

    error_code = "INVALID_PRICE"

    def __init__(self, price: object, reason: str = "must not be negative") -> None:
        super().__init__(
            f"Invalid unit price {price!r}: {reason}",
            context={"price": repr(price), "reason": reason},
        )


class InvalidDateError(ValidationError):
    """Raised when a settle or sell date is not a calendar date."""

    error_code = "INVALID_DATE"

    def __init__(self, value: object) -> None:
        super().__init__(
            f"Invalid trade date: {value!r}",
            context={"date": repr(value)},
        )


class LotOrderError(ValidationError):
    """Raised when purchase lots are not ordered oldest first."""

    error_code = "LOT_ORDER_ERROR"

    def __init__(self, lot_id: UUID, settle_date: str, previous_date: str) -> None:
        super().__init__(
            f"Purchase lot {lot_id} settled on {settle_date} "
            f"follows a lot settled on {previous_date}",
            context={
                "lot_id": str(lot_id),
                "settle_date": settle_date,
                "previous_date": previous_date,
            },
        )


# =============================================================================
# Lookup Errors
# =============================================================================


class NotFoundError(AssetTrackerError):
    """Base exception for records missing from the ledger store."""

    error_code = "NOT_FOUND"


class AssetNotFoundError(NotFoundError):
    """Raised when an asset cannot be found."""

    error_code = "ASSET_NOT_FOUND"

    def __init__(self, asset_ref: UUID | str) -> None:
        super().__init__(
            f"Asset not found: {asset_ref}",
            context={"asset": str(asset_ref)},
        )


class PurchaseLotNotFoundError(NotFoundError):
    """Raised when a purchase lot vanished before it could be mutated."""

    error_code = "PURCHASE_LOT_NOT_FOUND"

    def __init__(self, lot_id: UUID | str) -> None:
        super().__init__(
            f"Purchase lot not found: {lot_id}",
            context={"lot_id": str(lot_id)},
        )


# =============================================================================
# Plan Application Errors
# =============================================================================


class PlanApplicationError(AssetTrackerError):
    """Raised when one or more ledger mutations of a consumption plan failed.

    Attributes:
        applied_count: Number of actions that reached the store and were kept.
        failures: One ``(action, error)`` pair per failed action. The action is
            None when the store failed to commit after every action ran.
        rolled_back: Whether the store undid the actions applied before the failure.
    """

    error_code = "PLAN_APPLICATION_ERROR"

    def __init__(
        self,
        total_count: int,
        applied_count: int,
        failures: list[tuple[Any, AssetTrackerError]],
        *,
        rolled_back: bool = False,
    ) -> None:
        if rolled_back:
            message = (
                f"Consumption plan rolled back: {len(failures)} of "
                f"{total_count} actions failed"
            )
        else:
            message = (
                f"Consumption plan only partially applied: "
                f"{applied_count} of {total_count} actions applied"
            )
        super().__init__(
            message,
            context={
                "total_count": total_count,
                "applied_count": applied_count,
                "failed_count": len(failures),
                "rolled_back": rolled_back,
                "errors": [error.error_code for _, error in failures],
            },
        )
        self.total_count = total_count
        self.applied_count = applied_count
        self.failures = failures
        self.rolled_back = rolled_back


# =============================================================================
# Arithmetic Errors
# =============================================================================


class DivisionByZeroError(AssetTrackerError):
    """Raised when a calculation would divide by zero."""

    error_code = "DIVISION_BY_ZERO"


class NoOutstandingQuantityError(DivisionByZeroError):
    """Raised when an average cost is requested for an asset with no open lots."""

    error_code = "NO_OUTSTANDING_QUANTITY"

    def __init__(self, symbol: str) -> None:
        super().__init__(
            f"No outstanding quantity for {symbol}: average cost is undefined",
            context={"symbol": symbol},
        )


# =============================================================================
# Database Errors
# =============================================================================


class DatabaseError(AssetTrackerError):
    """Base exception for storage-related errors."""

    error_code = "DATABASE_ERROR"


class IntegrityError(DatabaseError):
    """Raised when a storage integrity constraint is violated."""

    error_code = "DATABASE_INTEGRITY_ERROR"
