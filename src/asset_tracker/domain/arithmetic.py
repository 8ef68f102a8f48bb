"""Exact decimal arithmetic used by every lot and gain calculation.

Addition, subtraction and multiplication run under a context with the
maximum supported precision and ``Inexact`` trapped, so a result that would
need rounding raises instead of drifting. Division is the only operation
allowed to round, and only to an explicit precision.
"""

from decimal import (
    MAX_EMAX,
    MAX_PREC,
    MIN_EMIN,
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    localcontext,
)

from asset_tracker.exceptions import DivisionByZeroError, InvalidAmountError

ZERO = Decimal("0")

DEFAULT_DIVISION_PRECISION = 28

EXACT_CONTEXT = Context(
    prec=MAX_PREC,
    rounding=ROUND_HALF_EVEN,
    Emax=MAX_EMAX,
    Emin=MIN_EMIN,
    traps=[InvalidOperation, DivisionByZero, Overflow, Inexact],
)


def to_decimal(value: object) -> Decimal:
    """Convert an int, Decimal or numeric string to a finite Decimal.

    Floats are rejected: their binary representation is already rounded.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(value, "booleans are not amounts")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidAmountError(value, "not a decimal number") from None
    elif isinstance(value, float):
        raise InvalidAmountError(
            value, "binary floats are not exact; pass an int, Decimal or str"
        )
    else:
        raise InvalidAmountError(value, f"unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise InvalidAmountError(value, "must be finite")
    return result


def add(a: Decimal, b: Decimal) -> Decimal:
    with localcontext(EXACT_CONTEXT):
        return a + b


def sub(a: Decimal, b: Decimal) -> Decimal:
    with localcontext(EXACT_CONTEXT):
        return a - b


def mul(a: Decimal, b: Decimal) -> Decimal:
    with localcontext(EXACT_CONTEXT):
        return a * b


def div(
    a: Decimal, b: Decimal, precision: int = DEFAULT_DIVISION_PRECISION
) -> Decimal:
    """Divide ``a`` by ``b``, rounding half-even to ``precision`` digits.

    Terminating quotients that fit in ``precision`` digits are exact.

    Raises:
        DivisionByZeroError: If ``b`` is zero.
    """
    if b.is_zero():
        raise DivisionByZeroError(f"Cannot divide {a} by zero")
    with localcontext() as ctx:
        ctx.prec = precision
        ctx.rounding = ROUND_HALF_EVEN
        return a / b


def compare(a: Decimal, b: Decimal) -> int:
    """Return -1, 0 or 1 as ``a`` is less than, equal to or greater than ``b``."""
    return int(a.compare(b))


def is_positive(value: Decimal) -> bool:
    return value > ZERO


def is_non_negative(value: Decimal) -> bool:
    return value >= ZERO


def total(values) -> Decimal:
    """Sum decimals exactly, in iteration order."""
    result = ZERO
    for value in values:
        result = add(result, value)
    return result


__all__ = [
    "DEFAULT_DIVISION_PRECISION",
    "EXACT_CONTEXT",
    "ZERO",
    "add",
    "compare",
    "div",
    "is_non_negative",
    "is_positive",
    "mul",
    "sub",
    "to_decimal",
    "total",
]
