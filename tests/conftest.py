"""
Pytest fixtures for the livestock test suite.

Provides:
- In-memory SQLite engine and session per test (schema created fresh)
- Deterministic clock and a fixed actor id
- A seeded herd matching the worked sale scenarios
- Structured log capture
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from livestock_kernel.db.engine import build_engine, create_tables
from livestock_kernel.domain.clock import DeterministicClock
from livestock_kernel.domain.entities import PaymentModel
from livestock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from livestock_kernel.services.herd_service import HerdService
from livestock_services.sale_coordinator import BusinessLockRegistry, SaleCoordinator

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture livestock logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, coordinator):
            coordinator.sell(...)
            logs = captured_logs()
            assert any(r["message"] == "sale_committed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("livestock")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    sess = Session(bind=engine, expire_on_commit=False)
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def actor_id():
    return TEST_ACTOR_ID


@pytest.fixture
def herd(session, deterministic_clock):
    return HerdService(session, deterministic_clock)


@pytest.fixture
def coordinator(session, deterministic_clock):
    return SaleCoordinator(session, clock=deterministic_clock, locks=BusinessLockRegistry())


@pytest.fixture
def business(herd, session, actor_id):
    info = herd.create_business("Green Pastures", actor_id)
    session.commit()
    return info


# =============================================================================
# Seeded herd
# =============================================================================


@pytest.fixture
def seed_herd(herd, session, actor_id):
    """
    Factory for the worked sale scenario.

    Four Active animals.  The target animal was bought for 30000 on
    2024-01-10 and carries 2000 of its own expenses; the business has 10000
    of shared expenses.  With a caretaker model, the target is assigned to
    that caretaker.
    """

    def _seed(payment_model: PaymentModel | None = None, health_cost: Decimal | None = None):
        biz = herd.create_business("Green Pastures", actor_id)
        caretaker = None
        if payment_model is not None:
            caretaker = herd.add_caretaker(biz.id, "Ravi", actor_id, payment_model=payment_model)

        target = herd.add_animal(
            biz.id,
            "G-001",
            "Boer",
            "Female",
            Decimal("30000"),
            date(2024, 1, 10),
            Decimal("32"),
            actor_id,
            caretaker_id=caretaker.id if caretaker else None,
            nickname="Bella",
        )
        others = [
            herd.add_animal(
                biz.id,
                f"G-00{i}",
                "Sirohi",
                "Male",
                Decimal("20000"),
                date(2024, 2, i),
                Decimal("30"),
                actor_id,
            )
            for i in range(2, 5)
        ]
        herd.record_expense(
            biz.id, "Feed", Decimal("1500"), date(2024, 2, 1), actor_id, animal_id=target.id
        )
        herd.record_expense(
            biz.id, "Medicine", Decimal("500"), date(2024, 3, 1), actor_id, animal_id=target.id
        )
        herd.record_expense(biz.id, "Feed", Decimal("6000"), date(2024, 2, 15), actor_id)
        herd.record_expense(biz.id, "Transport", Decimal("4000"), date(2024, 3, 20), actor_id)
        if health_cost is not None:
            herd.record_health_record(
                target.id, "Checkup", date(2024, 3, 5), actor_id, cost=health_cost
            )
        session.commit()
        return SimpleNamespace(business=biz, caretaker=caretaker, target=target, others=others)

    return _seed
