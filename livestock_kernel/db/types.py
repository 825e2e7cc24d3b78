"""
Module: livestock_kernel.db.types
Responsibility: Storage scale and rounding helpers for monetary amounts.
Architecture position: Kernel > DB.  May be imported by models/, services/
    and outer layers.  MUST NOT import from those layers.

Invariants enforced:
    - No floats for money.  Amounts are Decimal with Numeric(38, 9) storage
      (see Base.type_annotation_map).
    - round_money() is the only sanctioned rounding function; the allocation
      engine never rounds, reports round only when rendered.
    - Quantizing runs with the column's full 38 digits, never the default
      28-digit context.
"""

from decimal import ROUND_HALF_UP, Context, Decimal, localcontext

MONEY_PRECISION = 38
MONEY_DECIMAL_PLACES = 9
DEFAULT_ROUNDING = ROUND_HALF_UP

# Smallest magnitude a Numeric(38, 9) column cannot hold.
MONEY_LIMIT = Decimal(10) ** (MONEY_PRECISION - MONEY_DECIMAL_PLACES)

_MONEY_CONTEXT = Context(prec=MONEY_PRECISION)


def fits_money_column(value: Decimal) -> bool:
    return value.copy_abs() < MONEY_LIMIT


def quantize_for_storage(value: Decimal) -> Decimal:
    """Quantize a computed amount to the storage scale of Money columns."""
    with localcontext(_MONEY_CONTEXT):
        return value.quantize(
            Decimal(1).scaleb(-MONEY_DECIMAL_PLACES), rounding=DEFAULT_ROUNDING
        )


def round_money(
    value: Decimal,
    decimal_places: int = 2,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to (0 for whole units).
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    with localcontext(_MONEY_CONTEXT):
        return value.quantize(Decimal(1).scaleb(-decimal_places), rounding=rounding)
