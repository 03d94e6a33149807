# app/services/notification_dispatcher.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.models.enums import NotificationType
from app.models.notification import Notification

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class NotificationRequest:
    user_id: int
    user_role: str
    type: NotificationType
    title: str
    message: str
    related_id: Optional[int] = None


# realtime push hook; receives each persisted row
NotificationSink = Callable[[Notification], None]


class NotificationDispatcher:
    """
    Best-effort notification fan-out.

    Called after the primary change has committed. Each request is
    persisted in its own commit so one bad recipient cannot take the
    others down; failures are logged and skipped, never raised.
    """

    def __init__(self, sink: Optional[NotificationSink] = None) -> None:
        self.sink = sink

    def dispatch(self, db: Session, requests: Iterable[NotificationRequest]) -> List[Notification]:
        delivered: List[Notification] = []

        for req in requests:
            try:
                row = Notification(
                    user_id=req.user_id,
                    user_role=req.user_role,
                    type=req.type.value,
                    title=req.title,
                    message=req.message,
                    related_id=req.related_id,
                    is_read=False,
                    created_at=_now(),
                )
                db.add(row)
                db.commit()
            except Exception:
                db.rollback()
                logger.exception(
                    "notification persist failed",
                    extra={"user_id": req.user_id, "type": req.type.value, "related_id": req.related_id},
                )
                continue

            delivered.append(row)

            if self.sink is not None:
                try:
                    self.sink(row)
                except Exception:
                    logger.exception(
                        "notification sink failed",
                        extra={"notification_id": row.id, "user_id": row.user_id},
                    )

        return delivered


_default_dispatcher = NotificationDispatcher()


def get_notification_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency; override in tests to capture or fail deliveries."""
    return _default_dispatcher
