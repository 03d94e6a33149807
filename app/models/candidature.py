#app/models/candidature.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    Text,
    DateTime,
    Integer,
    ForeignKey,
    UniqueConstraint,
    Index,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.enums import MembershipOrigin


class Candidature(Base):
    __tablename__ = "candidatures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    program_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(16), nullable=False, doc="team | individual")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    members = relationship(
        "CandidatureMember",
        back_populates="candidature",
        order_by="CandidatureMember.id",
    )

    __table_args__ = (
        Index("ix_candidatures_program", "program_id"),
    )


class CandidatureMember(Base):
    """
    Link between a submission and a candidature.

    A submission sits in at most one formation/individual candidature;
    rows with origin 'fork' track a startup that was split out of a team
    on advance and are exempt from that uniqueness.
    """
    __tablename__ = "candidature_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    candidature_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("candidatures.id", ondelete="CASCADE"), nullable=False
    )
    submission_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False
    )

    origin: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=MembershipOrigin.FORMATION.value,
        doc="formation | individual | fork",
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    candidature = relationship("Candidature", back_populates="members")

    __table_args__ = (
        UniqueConstraint("candidature_id", "submission_id", name="uq_candidature_member"),
        Index(
            "uq_candidature_members_primary_submission",
            "submission_id",
            unique=True,
            postgresql_where=text("origin <> 'fork'"),
            sqlite_where=text("origin <> 'fork'"),
        ),
        Index("ix_candidature_members_submission", "submission_id"),
    )
