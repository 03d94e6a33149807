#app/models/program.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    String,
    Text,
    Date,
    DateTime,
    Integer,
    Boolean,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.enums import ProgramStatus


class Program(Base):
    __tablename__ = "programs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ProgramStatus.DRAFT.value,
        server_default=text(f"'{ProgramStatus.DRAFT.value}'"),
        doc="Draft | Active | Completed",
    )
    is_template: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    phases = relationship("Phase", back_populates="program", order_by="Phase.start_date")
    mentors = relationship("ProgramMentor", back_populates="program")

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_programs_dates"),
        Index("ix_programs_status", "status"),
    )


class ProgramMentor(Base):
    __tablename__ = "program_mentors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    program_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )
    mentor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    program = relationship("Program", back_populates="mentors")

    __table_args__ = (
        UniqueConstraint("program_id", "mentor_id", name="uq_program_mentor"),
        Index("ix_program_mentors_mentor", "mentor_id"),
    )
