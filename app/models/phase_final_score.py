#app/models/phase_final_score.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class PhaseFinalScore(Base):
    __tablename__ = "phase_final_scores"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    phase_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("phases.id", ondelete="CASCADE"), nullable=False
    )
    candidature_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("candidatures.id", ondelete="CASCADE"), nullable=False
    )
    mentor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    score: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("phase_id", "candidature_id", name="uq_phase_final_score"),
    )
