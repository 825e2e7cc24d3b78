"""
Module: livestock_kernel.models.weight_record
Responsibility: ORM persistence for weight measurements.  The latest record
    by date is written through to Animal.current_weight by
    HerdService.record_weight.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from livestock_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from livestock_kernel.domain.entities import WeightRecordInfo


class WeightRecord(TrackedBase):
    __tablename__ = "weight_records"

    __table_args__ = (
        CheckConstraint("weight > 0", name="ck_weight_record_weight"),
        Index("idx_weight_record_animal_date", "animal_id", "record_date"),
    )

    business_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("businesses.id"),
        nullable=False,
    )
    animal_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    weight: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    record_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def to_dto(self) -> WeightRecordInfo:
        """Convert ORM model to frozen domain DTO."""
        from livestock_kernel.domain.entities import WeightRecordInfo

        return WeightRecordInfo(
            id=self.id,
            business_id=self.business_id,
            animal_id=self.animal_id,
            weight=self.weight,
            record_date=self.record_date,
            notes=self.notes,
        )
