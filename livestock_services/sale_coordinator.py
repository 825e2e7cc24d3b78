"""
SaleCoordinator -- the all-or-nothing Active -> Sold transition.

Responsibility:
    Sells one animal: allocates its costs against a snapshot of its business,
    then writes the animal's sale fields, the Sale ledger entry and the
    caretaker accrual as one commit unit.

Architecture position:
    Services -- orchestration layer.  Owns the transaction boundary for a
    sale (commit on success, rollback on any failure when auto_commit is
    True).  Composes kernel models/selectors and the allocation engine.

Sequence (inside the per-business lock):
    1. SELECT ... FOR UPDATE the business row, then the animal row.
    2. Reject unless the animal is Active.
    3. Read the snapshot BEFORE the status write, so the animal counts
       itself in the shared-cost denominator.
    4. Allocate, compute profit and split.
    5. Write status = Sold, sale_price, sale_date.
    6. Insert the Sale ledger entry with structured profit fields.
    7. Apply the caretaker accrual (percentage) or record it as skipped
       (monthly / no caretaker).
    8. Commit.

Invariants enforced:
    - No animal is left Sold without its ledger entry, and no ledger entry
      without a decided accrual: every write happens in one transaction.
    - Two sells against the same business never read overlapping
      pre-transition snapshots: an in-process lock serializes them within
      a process, and the business row lock serializes them across
      processes on PostgreSQL.
    - Selling a non-Active animal fails with InvalidStateError and writes
      nothing.

Failure modes:
    - ValidationError: sale_price <= 0 / NaN, sale_date missing or before
      purchase, caretaker without a payment model.
    - AnimalNotFoundError: unknown animal id.
    - InvalidStateError: animal not Active.
    - ConsistencyError: lock wait timed out, or the database failed after
      validation; the unit was rolled back in full.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, localcontext
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from livestock_engines.allocation import (
    ENGINE_CONTEXT,
    AllocationEngine,
    CostBreakdown,
    ProfitFigures,
    ProfitSplit,
)
from livestock_engines.pricing import PricingAdvisor
from livestock_kernel.db.types import MONEY_LIMIT, fits_money_column, quantize_for_storage
from livestock_kernel.domain.amounts import ZERO, to_decimal
from livestock_kernel.domain.clock import Clock, SystemClock
from livestock_kernel.domain.entities import (
    AccrualStatus,
    AnimalInfo,
    AnimalStatus,
    LedgerEntryInfo,
    PaymentModel,
    TransactionType,
    describe_sale,
)
from livestock_kernel.exceptions import (
    AnimalNotFoundError,
    ConsistencyError,
    InvalidStateError,
    LivestockKernelError,
    ValidationError,
)
from livestock_kernel.logging_config import LogContext, get_logger
from livestock_kernel.models.animal import Animal
from livestock_kernel.models.business import Business
from livestock_kernel.models.caretaker import Caretaker
from livestock_kernel.models.transaction import LedgerTransaction
from livestock_kernel.selectors.snapshot_selector import SnapshotSelector

logger = get_logger("services.sale_coordinator")

# Actor recorded when the host does not supply one
SYSTEM_ACTOR_ID = UUID(int=0)


@dataclass(frozen=True)
class SaleRecord:
    """Everything a committed sale produced."""

    animal: AnimalInfo
    ledger_entry: LedgerEntryInfo
    breakdown: CostBreakdown
    profit: ProfitFigures
    split: ProfitSplit
    accrual_status: AccrualStatus
    caretaker_id: UUID | None = None
    caretaker_total_earnings: Decimal | None = None


@dataclass(frozen=True)
class SalePreview:
    """Read-only figures for a prospective sale."""

    animal: AnimalInfo
    breakdown: CostBreakdown
    profit: ProfitFigures
    split: ProfitSplit
    suggested_price: int


class BusinessLockRegistry:
    """
    One ``threading.Lock`` per business id while a sale holds or waits on it.

    Only the wait is bounded; a timeout raises ConsistencyError before
    anything has been written.  A lock is dropped once nobody holds or waits
    on it, so the registry holds at most one entry per business with a sale
    in flight.
    """

    def __init__(self) -> None:
        self._locks: dict[UUID, threading.Lock] = {}
        self._users: dict[UUID, int] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, business_id: UUID) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(business_id)
            if lock is None:
                lock = self._locks[business_id] = threading.Lock()
            self._users[business_id] = self._users.get(business_id, 0) + 1
            return lock

    def _checkin(self, business_id: UUID) -> None:
        with self._guard:
            self._users[business_id] -= 1
            if not self._users[business_id]:
                del self._users[business_id]
                del self._locks[business_id]

    @contextmanager
    def hold(self, business_id: UUID, timeout: float) -> Iterator[None]:
        lock = self._checkout(business_id)
        try:
            if not lock.acquire(timeout=timeout):
                logger.error(
                    "business_lock_timeout",
                    extra={"business_id": str(business_id), "timeout_seconds": timeout},
                )
                raise ConsistencyError(
                    "sell", str(business_id), f"timed out after {timeout}s waiting for business lock"
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(business_id)


_DEFAULT_LOCKS = BusinessLockRegistry()


class SaleCoordinator:
    """
    Performs sales as single commit units.

    Contract:
        ``sell`` either commits all of (animal, ledger entry, accrual) or
        leaves the store untouched and raises.
    Non-goals:
        - Does not retry.  Callers decide whether to re-invoke.
        - Does not accrue monthly earnings; those are recorded as skipped.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
        lock_timeout_seconds: float = 10,
        locks: BusinessLockRegistry | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._auto_commit = auto_commit
        self._lock_timeout = lock_timeout_seconds
        self._locks = locks or _DEFAULT_LOCKS
        self._engine = AllocationEngine()
        self._pricing = PricingAdvisor()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def sell(
        self,
        animal_id: UUID,
        sale_price: Decimal | int | str,
        sale_date: date,
        buyer: str | None = None,
        actor_id: UUID | None = None,
    ) -> SaleRecord:
        """
        Sell an Active animal.

        Args:
            animal_id: Animal to sell.
            sale_price: Positive sale price.
            sale_date: Date of sale, not before the purchase date.
            buyer: Optional buyer name recorded on the ledger entry.
            actor_id: Who performed the sale (defaults to SYSTEM_ACTOR_ID).

        Returns:
            SaleRecord describing the committed sale.
        """
        price = self._validate_price(animal_id, sale_price)
        if sale_date is None:
            raise ValidationError("sale_date", "is required", str(animal_id))

        animal = self._session.get(Animal, animal_id)
        if animal is None:
            raise AnimalNotFoundError(str(animal_id))
        if sale_date < animal.purchase_date:
            raise ValidationError(
                "sale_date",
                f"{sale_date.isoformat()} is before purchase date "
                f"{animal.purchase_date.isoformat()}",
                str(animal_id),
            )
        business_id = animal.business_id
        actor = actor_id or SYSTEM_ACTOR_ID

        with LogContext.bind(
            correlation_id=str(uuid4()),
            business_id=str(business_id),
            animal_id=str(animal_id),
            actor_id=str(actor),
        ):
            logger.info(
                "sale_started",
                extra={"sale_price": str(price), "sale_date": sale_date.isoformat()},
            )
            t0 = time.monotonic()

            with self._locks.hold(business_id, self._lock_timeout):
                try:
                    record = self._do_sell(business_id, animal_id, price, sale_date, buyer, actor)
                    if self._auto_commit:
                        self._session.commit()
                except LivestockKernelError as exc:
                    if self._auto_commit:
                        self._session.rollback()
                    logger.warning(
                        "sale_rejected",
                        extra={"code": exc.code, "reason": str(exc)},
                    )
                    raise
                except SQLAlchemyError as exc:
                    if self._auto_commit:
                        self._session.rollback()
                    logger.error("sale_rolled_back", exc_info=True)
                    raise ConsistencyError("sell", str(animal_id), str(exc)) from exc
                except Exception:
                    if self._auto_commit:
                        self._session.rollback()
                    logger.error("sale_rolled_back", exc_info=True)
                    raise

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info(
                "sale_committed" if self._auto_commit else "sale_flushed",
                extra={
                    "ledger_entry_id": str(record.ledger_entry.id),
                    "net_profit": str(record.profit.net_profit),
                    "caretaker_share": str(record.split.caretaker_share),
                    "accrual_status": record.accrual_status.value,
                    "active_count": record.breakdown.active_count,
                    "duration_ms": duration_ms,
                },
            )
            return record

    def preview_sale(
        self,
        animal_id: UUID,
        sale_price: Decimal | int | str,
    ) -> SalePreview:
        """Figures a sale at ``sale_price`` would produce today.  Writes nothing."""
        price = self._validate_price(animal_id, sale_price)
        selector = SnapshotSelector(self._session)
        animal = selector.get_animal(animal_id)
        if not animal.is_active:
            raise InvalidStateError(str(animal_id), animal.status.value, "preview_sale")

        snapshot = selector.fetch_by_business(animal.business_id)
        breakdown = self._engine.allocate(
            animal, snapshot.expenses, snapshot.animals, snapshot.health_records
        )
        profit = self._engine.compute_profit(animal, breakdown, price)
        caretaker = snapshot.caretaker(animal.caretaker_id)
        payment_model = None
        if caretaker is not None:
            payment_model = self._governing_model(animal_id, caretaker.id, caretaker.payment_model)
        split = self._engine.split_profit(profit.net_profit, payment_model)
        suggested = self._pricing.suggest_for_animal(animal, snapshot.expenses, self._clock.today())

        return SalePreview(
            animal=animal,
            breakdown=breakdown,
            profit=profit,
            split=split,
            suggested_price=suggested,
        )

    # -------------------------------------------------------------------------
    # Sale steps
    # -------------------------------------------------------------------------

    def _do_sell(
        self,
        business_id: UUID,
        animal_id: UUID,
        price: Decimal,
        sale_date: date,
        buyer: str | None,
        actor_id: UUID,
    ) -> SaleRecord:
        # Discard identity-map state read before the lock was held
        self._session.expire_all()

        business = self._session.execute(
            select(Business)
            .where(Business.id == business_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one()

        animal = self._session.execute(
            select(Animal)
            .where(Animal.id == animal_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one()

        if animal.status != AnimalStatus.ACTIVE.value:
            raise InvalidStateError(str(animal_id), animal.status, "sell")

        caretaker = None
        payment_model = None
        if animal.caretaker_id is not None:
            caretaker = self._session.execute(
                select(Caretaker)
                .where(Caretaker.id == animal.caretaker_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one()
            payment_model = self._governing_model(
                animal_id, caretaker.id, caretaker.to_dto().payment_model
            )

        # Snapshot precedes the status write: the animal is still Active here
        snapshot = SnapshotSelector(self._session).fetch_by_business(business_id)
        animal_info = animal.to_dto()
        breakdown = self._engine.allocate(
            animal_info, snapshot.expenses, snapshot.animals, snapshot.health_records
        )
        profit = self._engine.compute_profit(animal_info, breakdown, price)
        split = self._engine.split_profit(profit.net_profit, payment_model)

        if caretaker is None:
            accrual_status = AccrualStatus.NO_CARETAKER
        elif split.accrues_at_sale:
            accrual_status = AccrualStatus.APPLIED
        else:
            accrual_status = AccrualStatus.SKIPPED_MONTHLY

        self._mark_sold(animal, price, sale_date, actor_id)
        entry = self._insert_ledger_entry(
            business, animal, profit, split, accrual_status, sale_date, buyer, actor_id
        )
        self._apply_accrual(caretaker, split, accrual_status, actor_id)

        return SaleRecord(
            animal=animal.to_dto(),
            ledger_entry=entry.to_dto(),
            breakdown=breakdown,
            profit=profit,
            split=split,
            accrual_status=accrual_status,
            caretaker_id=caretaker.id if caretaker else None,
            caretaker_total_earnings=caretaker.total_earnings if caretaker else None,
        )

    def _mark_sold(
        self,
        animal: Animal,
        price: Decimal,
        sale_date: date,
        actor_id: UUID,
    ) -> None:
        animal.status = AnimalStatus.SOLD.value
        animal.sale_price = price
        animal.sale_date = sale_date
        animal.updated_by_id = actor_id
        self._session.flush()

    def _insert_ledger_entry(
        self,
        business: Business,
        animal: Animal,
        profit: ProfitFigures,
        split: ProfitSplit,
        accrual_status: AccrualStatus,
        sale_date: date,
        buyer: str | None,
        actor_id: UUID,
    ) -> LedgerTransaction:
        net = quantize_for_storage(profit.net_profit)
        total_cost = quantize_for_storage(profit.total_cost)
        entry = LedgerTransaction(
            business_id=business.id,
            animal_id=animal.id,
            transaction_type=TransactionType.SALE.value,
            amount=profit.sale_price,
            transaction_date=sale_date,
            description=describe_sale(animal.tag_number, net, total_cost, business.currency),
            buyer=buyer,
            net_profit=net,
            gross_profit=quantize_for_storage(profit.gross_profit),
            total_cost=total_cost,
            caretaker_id=animal.caretaker_id,
            caretaker_share=quantize_for_storage(split.caretaker_share),
            accrual_status=accrual_status.value,
            created_by_id=actor_id,
        )
        self._session.add(entry)
        self._session.flush()
        return entry

    def _apply_accrual(
        self,
        caretaker: Caretaker | None,
        split: ProfitSplit,
        accrual_status: AccrualStatus,
        actor_id: UUID,
    ) -> None:
        if accrual_status != AccrualStatus.APPLIED:
            logger.info("caretaker_accrual_skipped", extra={"accrual_status": accrual_status.value})
            return
        share = quantize_for_storage(split.caretaker_share)
        with localcontext(ENGINE_CONTEXT):
            caretaker.total_earnings = (caretaker.total_earnings or ZERO) + share
        caretaker.updated_by_id = actor_id
        self._session.flush()
        logger.info(
            "caretaker_accrual_applied",
            extra={"caretaker_id": str(caretaker.id), "caretaker_share": str(share)},
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_price(animal_id: UUID, sale_price: Decimal | int | str) -> Decimal:
        price = to_decimal(sale_price, "sale_price", entity_id=str(animal_id))
        if price == ZERO:
            raise ValidationError("sale_price", "must be greater than zero", str(animal_id))
        if not fits_money_column(price):
            raise ValidationError(
                "sale_price", f"must be below {MONEY_LIMIT:E}", str(animal_id)
            )
        return price

    @staticmethod
    def _governing_model(
        animal_id: UUID,
        caretaker_id: UUID,
        payment_model: PaymentModel | None,
    ) -> PaymentModel:
        if payment_model is None:
            raise ValidationError(
                "caretaker.payment_model",
                f"caretaker {caretaker_id} has no payment model; "
                "run HerdService.migrate_payment_models first",
                str(animal_id),
            )
        return payment_model
