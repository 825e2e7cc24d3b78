"""
Typed exception hierarchy for the livestock kernel.

Every error carries a class-level ``code`` (machine-readable, API-safe) and
the structured context a host needs to render a message: entity id,
offending field, current status.  Callers catch by type, never by parsing
message text.

    LivestockKernelError (base)
    |
    +-- ValidationError            VALIDATION_ERROR
    |   +-- InvalidInputError      INVALID_INPUT
    |
    +-- InvalidStateError          INVALID_STATE
    |
    +-- NotFoundError              NOT_FOUND
    |   +-- BusinessNotFoundError  BUSINESS_NOT_FOUND
    |   +-- AnimalNotFoundError    ANIMAL_NOT_FOUND
    |   +-- CaretakerNotFoundError CARETAKER_NOT_FOUND
    |
    +-- ConsistencyError           CONSISTENCY_ERROR

Handling patterns:

    try:
        coordinator.sell(animal_id, sale_price, sale_date)
    except InvalidStateError as e:
        notify_user(f"Animal is already {e.current_status}")
    except ValidationError as e:
        highlight_field(e.field, e.reason)
    except ConsistencyError as e:
        # Sale was rolled back in full; nothing was written.
        log.error("sale_failed", extra={"code": e.code, "stage": e.operation})

None of these are retried by the kernel.  Retries, if any, belong to the
host's transport layer.
"""

from __future__ import annotations


class LivestockKernelError(Exception):
    """
    Base exception for all livestock kernel errors.

    All subclasses define a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "LIVESTOCK_KERNEL_ERROR"


# Input validation


class ValidationError(LivestockKernelError):
    """Bad input: negative price, missing required date, unknown enum value."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str, entity_id: str | None = None):
        self.field = field
        self.reason = reason
        self.entity_id = entity_id
        target = f" on {entity_id}" if entity_id else ""
        super().__init__(f"Invalid {field}{target}: {reason}")


class InvalidInputError(ValidationError):
    """Numeric input to a pure engine is negative or NaN."""

    code: str = "INVALID_INPUT"


# State machine


class InvalidStateError(LivestockKernelError):
    """Operation is not permitted given the entity's current status."""

    code: str = "INVALID_STATE"

    def __init__(self, entity_id: str, current_status: str, operation: str):
        self.entity_id = entity_id
        self.current_status = current_status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} {entity_id}: status is {current_status}"
        )


# Lookups


class NotFoundError(LivestockKernelError):
    """Referenced id is absent from the store."""

    code: str = "NOT_FOUND"
    entity_type: str = "entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity_type.capitalize()} not found: {entity_id}")


class BusinessNotFoundError(NotFoundError):
    code: str = "BUSINESS_NOT_FOUND"
    entity_type: str = "business"


class AnimalNotFoundError(NotFoundError):
    code: str = "ANIMAL_NOT_FOUND"
    entity_type: str = "animal"


class CaretakerNotFoundError(NotFoundError):
    code: str = "CARETAKER_NOT_FOUND"
    entity_type: str = "caretaker"


# Atomicity


class ConsistencyError(LivestockKernelError):
    """
    A multi-record unit of work could not be committed atomically.

    Raised after the unit has been rolled back in full; no partial state
    remains.
    """

    code: str = "CONSISTENCY_ERROR"

    def __init__(self, operation: str, entity_id: str, reason: str):
        self.operation = operation
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"{operation} failed for {entity_id} and was rolled back: {reason}")
