#app/models/phase.py
from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import String, Text, Date, Integer, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Phase(Base):
    __tablename__ = "phases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    program_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # only ever set on the program's last phase
    winner_candidature_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("candidatures.id", ondelete="SET NULL"), nullable=True
    )

    program = relationship("Program", back_populates="phases")

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_phases_dates"),
        Index("ix_phases_program_end", "program_id", "end_date"),
    )
