# app/db/unit_of_work.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(db: Session, *, conflict_message: str = "Concurrent update conflict.") -> Iterator[Session]:
    """
    Transaction scope for one check-then-write sequence.

    - commits once when the block exits cleanly
    - rolls back on any exception
    - unique-constraint violations (the last-resort race guard) surface
      as ConflictError instead of a raw IntegrityError

    Row locks taken inside the block (SELECT ... FOR UPDATE) are held
    until the commit.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("integrity violation rolled back", extra={"error": str(exc.orig)})
        raise ConflictError(conflict_message) from exc
    except Exception:
        db.rollback()
        raise
