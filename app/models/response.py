#app/models/response.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime, Integer, Boolean, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Response(Base):
    """
    A value recorded against one criterion for one candidature.

    Team-filled rows start unvalidated and flip to validated exactly once;
    a validated row is never updated again.
    """
    __tablename__ = "responses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    candidature_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("candidatures.id", ondelete="CASCADE"), nullable=False
    )
    criterion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("criteria.id", ondelete="CASCADE"), nullable=False
    )

    # normalised text form of the typed value
    value: Mapped[str] = mapped_column(String(512), nullable=False)

    filled_by_mentor_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    validated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    validated_by_mentor_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    validated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("candidature_id", "criterion_id", name="uq_response_candidature_criterion"),
        Index("ix_responses_criterion", "criterion_id"),
    )
