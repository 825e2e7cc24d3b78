"""
Reporting Module Service (``livestock_modules.reporting.service``).

Responsibility
--------------
Builds the four periodic reports (inventory, financial, health, caretaker
performance) by bridging ``SnapshotSelector`` to the pure transformation
functions in ``statements.py``.  This is a **read-only** service.

Architecture position
---------------------
**Modules layer**.  Constructor: ``session`` + ``clock`` + ``config``.

Invariants enforced
-------------------
* Read-only -- no mutations to any table.
* Each collection is filtered to the period on its own; animal membership
  never filters expenses, health or weight records.
* Caretaker earnings are re-derived through ``AllocationEngine``; the
  accrued total is reported beside them, never substituted.

Failure modes
-------------
* Unknown business  -> ``BusinessNotFoundError``.
* Unknown report kind  -> ``ValidationError``.
* Selector query failure  -> exception propagates (no rollback needed --
  read-only).
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from livestock_engines.allocation import AllocationEngine
from livestock_kernel.domain.clock import Clock, SystemClock
from livestock_kernel.domain.entities import BusinessSnapshot
from livestock_kernel.domain.period import ReportPeriod, slice_snapshot
from livestock_kernel.exceptions import ValidationError
from livestock_kernel.logging_config import get_logger
from livestock_kernel.selectors.snapshot_selector import SnapshotSelector
from livestock_modules.reporting.config import ReportingConfig
from livestock_modules.reporting.models import (
    Report,
    ReportEnvelope,
    ReportKind,
    ReportMetadata,
)
from livestock_modules.reporting.statements import (
    build_caretaker_report,
    build_financial_report,
    build_health_report,
    build_inventory_report,
    render_to_dict,
)

logger = get_logger("modules.reporting.service")


class ReportAggregator:
    """
    Periodic report generation.

    Contract
    --------
    * ``build_report`` returns a frozen report DTO; ``to_dict`` renders it.
    * Two calls over unchanged data return equal reports; the generation
      timestamp is only carried by ``build_envelope``.

    Non-goals
    ---------
    * Does NOT lock against an in-flight sale.  Reports read whatever the
      session sees when the snapshot is fetched.
    * Does NOT format text, tables or PDFs.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._snapshots = SnapshotSelector(session)
        self._engine = AllocationEngine()

    def _build_metadata(
        self,
        kind: ReportKind,
        snapshot: BusinessSnapshot,
        period: ReportPeriod,
    ) -> ReportMetadata:
        """Build report metadata from the business row and period."""
        business = snapshot.business
        return ReportMetadata(
            kind=kind,
            business_id=business.id,
            business_name=business.name,
            currency=business.currency or self._config.default_currency,
            period_start=period.start,
            period_end=period.end,
            period_label=period.label,
        )

    def build_report(
        self,
        kind: ReportKind | str,
        business_id: UUID,
        period: ReportPeriod,
    ) -> Report:
        """
        Build one report for a business over ``period``.

        Args:
            kind: Which report to build.
            business_id: Business whose records are reported.
            period: Inclusive date window.

        Returns:
            The report DTO for ``kind``.
        """
        try:
            kind = ReportKind(kind)
        except ValueError as exc:
            raise ValidationError("kind", f"unknown report kind {kind!r}") from exc

        full = self._snapshots.fetch_by_business(business_id)
        sliced = slice_snapshot(full, period)
        metadata = self._build_metadata(kind, full, period)

        match kind:
            case ReportKind.INVENTORY:
                report = build_inventory_report(metadata, sliced)
            case ReportKind.FINANCIAL:
                report = build_financial_report(
                    metadata,
                    sliced,
                    full,
                    self._engine,
                    trend_months=self._config.trend_months,
                )
            case ReportKind.HEALTH:
                report = build_health_report(
                    metadata,
                    sliced,
                    full,
                    today=self._clock.today(),
                    upcoming_limit=self._config.upcoming_treatment_limit,
                )
            case ReportKind.CARETAKER_PERFORMANCE:
                report = build_caretaker_report(metadata, sliced, full, self._engine)

        logger.info(
            "report_built",
            extra={
                "report_kind": kind.value,
                "business_id": str(business_id),
                "period_start": period.start.isoformat(),
                "period_end": period.end.isoformat(),
                "animal_count": len(sliced.animals),
                "expense_count": len(sliced.expenses),
                "health_record_count": len(sliced.health_records),
            },
        )
        return report

    def build_envelope(
        self,
        kind: ReportKind | str,
        business_id: UUID,
        period: ReportPeriod,
    ) -> ReportEnvelope:
        """Build a report and stamp it with the clock's current time."""
        report = self.build_report(kind, business_id, period)
        return ReportEnvelope(report=report, generated_at=self._clock.now().isoformat())

    def to_dict(self, report: object, display_precision: int | None = None) -> dict:
        """
        Convert a report DTO or envelope to a plain dict for JSON serialization,
        rounding amounts to ``display_precision`` (config default when
        omitted).
        """
        if display_precision is None:
            display_precision = self._config.display_precision
        return render_to_dict(report, display_precision)
