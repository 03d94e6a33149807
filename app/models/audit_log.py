from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import String, DateTime, Integer, Index, JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class AuditLog(Base):
    """
    Append-only audit row, one per successful workflow mutation.
    Never UPDATEd.
    """
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g., CANDIDATURE_CREATED

    actor_user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    program_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    request_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    details_json: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_audit_program", "program_id"),
        Index("ix_audit_created_at", "created_at"),
    )
