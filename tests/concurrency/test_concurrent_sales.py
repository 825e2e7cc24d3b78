"""
Concurrent sale tests.

Each worker thread gets its own Session on a shared file-backed SQLite
database, so the identity maps are independent and the only thing
serializing the sales is the coordinator's per-business lock.
"""

import threading
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from livestock_kernel.db.engine import build_engine, create_tables
from livestock_kernel.domain.clock import DeterministicClock
from livestock_kernel.exceptions import ConsistencyError, InvalidStateError
from livestock_kernel.models import Animal, LedgerTransaction
from livestock_kernel.services.herd_service import HerdService
from livestock_services.sale_coordinator import BusinessLockRegistry, SaleCoordinator

TEST_ACTOR_ID = uuid4()

CLOCK = DeterministicClock(datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc))
SALE_DATE = date(2024, 5, 15)


@pytest.fixture
def file_engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'livestock.db'}")
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def seeded(file_engine):
    """Business with four Active animals and 10000 of shared expenses."""
    with Session(bind=file_engine, expire_on_commit=False) as session:
        herd = HerdService(session, CLOCK)
        biz = herd.create_business("Hill Farm", TEST_ACTOR_ID)
        animals = [
            herd.add_animal(
                biz.id, f"H-{i}", "Boer", "Female", "20000", date(2024, 1, i), "30", TEST_ACTOR_ID
            )
            for i in range(1, 5)
        ]
        herd.record_expense(biz.id, "Feed", "10000", date(2024, 2, 1), TEST_ACTOR_ID)
        session.commit()
    return biz, animals


def run_concurrently(engine, locks, jobs):
    """
    Run each (animal_id, price) job on its own thread and session.

    Returns the list of SaleRecords or exceptions, one per job.
    """
    barrier = threading.Barrier(len(jobs))
    results = [None] * len(jobs)

    def worker(index, animal_id, price):
        with Session(bind=engine, expire_on_commit=False) as session:
            coordinator = SaleCoordinator(session, clock=CLOCK, locks=locks)
            barrier.wait()
            try:
                results[index] = coordinator.sell(animal_id, price, SALE_DATE)
            except Exception as exc:
                results[index] = exc

    threads = [
        threading.Thread(target=worker, args=(i, animal_id, price))
        for i, (animal_id, price) in enumerate(jobs)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results


class TestConcurrentSales:
    def test_same_animal_sold_once(self, file_engine, seeded):
        _, animals = seeded
        target = animals[0].id

        results = run_concurrently(
            file_engine,
            BusinessLockRegistry(),
            [(target, Decimal("30000")), (target, Decimal("31000"))],
        )

        failures = [r for r in results if isinstance(r, Exception)]
        successes = [r for r in results if not isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidStateError)

        with Session(bind=file_engine) as session:
            sales = session.scalar(
                select(func.count(LedgerTransaction.id)).where(
                    LedgerTransaction.animal_id == target,
                    LedgerTransaction.transaction_type == "Sale",
                )
            )
            sold = session.get(Animal, target)
            assert sales == 1
            assert sold.status == "Sold"
            assert sold.sale_price == successes[0].animal.sale_price

    def test_same_business_sales_see_each_other(self, file_engine, seeded):
        """The second sale's snapshot sees the first animal already Sold."""
        _, animals = seeded

        results = run_concurrently(
            file_engine,
            BusinessLockRegistry(),
            [(animals[0].id, Decimal("30000")), (animals[1].id, Decimal("30000"))],
        )

        assert not [r for r in results if isinstance(r, Exception)]
        assert sorted(r.breakdown.active_count for r in results) == [3, 4]


class TestLockTimeout:
    def test_timeout_raises_and_writes_nothing(self, seed_herd, session, deterministic_clock):
        herd = seed_herd()
        locks = BusinessLockRegistry()
        coordinator = SaleCoordinator(
            session, clock=deterministic_clock, lock_timeout_seconds=0.05, locks=locks
        )

        with locks.hold(herd.business.id, timeout=1):
            with pytest.raises(ConsistencyError):
                coordinator.sell(herd.target.id, Decimal("40000"), SALE_DATE)

        session.expire_all()
        assert session.get(Animal, herd.target.id).status == "Active"

    def test_lock_released_after_failure(self, seed_herd, session, deterministic_clock):
        herd = seed_herd()
        locks = BusinessLockRegistry()
        coordinator = SaleCoordinator(session, clock=deterministic_clock, locks=locks)

        coordinator.sell(herd.target.id, Decimal("40000"), SALE_DATE)
        with pytest.raises(InvalidStateError):
            coordinator.sell(herd.target.id, Decimal("40000"), SALE_DATE)

        with locks.hold(herd.business.id, timeout=0):
            pass


class TestLockRegistry:
    def test_idle_locks_dropped(self, seed_herd, session, deterministic_clock):
        locks = BusinessLockRegistry()
        coordinator = SaleCoordinator(session, clock=deterministic_clock, locks=locks)

        for _ in range(3):
            herd = seed_herd()
            coordinator.sell(herd.target.id, Decimal("40000"), SALE_DATE)

        assert len(locks) == 0

    def test_dropped_after_timeout(self):
        locks = BusinessLockRegistry()
        business_id = uuid4()

        with locks.hold(business_id, timeout=1):
            with pytest.raises(ConsistencyError):
                with locks.hold(business_id, timeout=0.01):
                    pass
            assert len(locks) == 1

        assert len(locks) == 0
