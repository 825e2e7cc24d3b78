"""
Amount coercion for domain inputs.

Every monetary or weight value entering the domain passes through
``to_decimal`` so floats are converted via their string form and NaN or
negative values are rejected at the boundary with the offending field named.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from livestock_kernel.exceptions import ValidationError

ZERO = Decimal("0")


def to_decimal(
    value: Decimal | int | float | str | None,
    field: str,
    *,
    allow_negative: bool = False,
    entity_id: str | None = None,
    error_cls: type[ValidationError] = ValidationError,
) -> Decimal:
    """
    Convert ``value`` to Decimal, rejecting None, NaN, infinities and (unless
    allowed) negative numbers.

    Raises:
        error_cls (a ValidationError subclass) naming ``field``.
    """
    if value is None:
        raise error_cls(field, "is required", entity_id)
    if isinstance(value, bool):
        raise error_cls(field, "must be a number, got bool", entity_id)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise error_cls(field, f"not a number: {value!r}", entity_id) from exc
    if amount.is_nan():
        raise error_cls(field, "is NaN", entity_id)
    if amount.is_infinite():
        raise error_cls(field, "is infinite", entity_id)
    if not allow_negative and amount < ZERO:
        raise error_cls(field, f"cannot be negative ({amount})", entity_id)
    return amount
