#app/models/candidature_phase.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class CandidaturePhase(Base):
    """
    Phase history of a candidature.
    - one row per (candidature, phase)
    - re-advancing into a phase refreshes passed_at
    - the current phase is the row with the latest passed_at
    """
    __tablename__ = "candidature_phases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    candidature_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("candidatures.id", ondelete="CASCADE"), nullable=False
    )
    phase_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("phases.id", ondelete="CASCADE"), nullable=False
    )

    passed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("candidature_id", "phase_id", name="uq_candidature_phase"),
        Index("ix_candidature_phases_passed", "candidature_id", "passed_at"),
    )
