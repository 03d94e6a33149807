#app/models/criterion.py
from __future__ import annotations

from sqlalchemy import String, Integer, Float, Boolean, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Criterion(Base):
    __tablename__ = "criteria"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    phase_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("phases.id", ondelete="CASCADE"), nullable=False
    )

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, doc="numeric | stars | bool | select")
    weight: Mapped[float] = mapped_column(Float, nullable=False)

    visible_to_mentors: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    visible_to_teams: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    fill_role: Mapped[str] = mapped_column(String(16), nullable=False, doc="team | mentor")
    requires_validation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint("weight > 0", name="ck_criteria_weight_positive"),
        Index("ix_criteria_phase", "phase_id"),
    )
