"""
Module: livestock_kernel.models.health_record
Responsibility: ORM persistence for health events and their cost.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - cost >= 0.
    - animal_id is required; health cost is always animal-specific and never
      enters the shared pool.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from livestock_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from livestock_kernel.domain.entities import HealthRecordInfo


class HealthRecord(TrackedBase):
    __tablename__ = "health_records"

    __table_args__ = (
        CheckConstraint("cost >= 0", name="ck_health_record_cost"),
        CheckConstraint(
            "status IN ('Healthy', 'Under Treatment', 'Recovered')",
            name="ck_health_record_status",
        ),
        Index("idx_health_record_business_date", "business_id", "record_date"),
        Index("idx_health_record_animal", "animal_id"),
    )

    business_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("businesses.id"),
        nullable=False,
    )
    animal_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    record_type: Mapped[str] = mapped_column(String(20), nullable=False)
    record_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    treatment: Mapped[str | None] = mapped_column(String(500), nullable=True)
    veterinarian: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cost: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Healthy")
    next_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    def to_dto(self) -> HealthRecordInfo:
        """Convert ORM model to frozen domain DTO."""
        from livestock_kernel.domain.entities import HealthRecordInfo

        return HealthRecordInfo(
            id=self.id,
            business_id=self.business_id,
            animal_id=self.animal_id,
            record_type=self.record_type,
            record_date=self.record_date,
            cost=self.cost,
            status=self.status,
            description=self.description,
            treatment=self.treatment,
            veterinarian=self.veterinarian,
            next_due_date=self.next_due_date,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<HealthRecord {self.record_type} {self.record_date} ({self.status})>"
