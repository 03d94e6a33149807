from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.models.enums import NotificationType
from app.models.notification import Notification
from app.services.notification_dispatcher import NotificationDispatcher, NotificationRequest


def _req(user_id, **kw):
    return NotificationRequest(
        user_id=user_id,
        user_role=kw.get("role", "startup"),
        type=NotificationType.PHASE_ADVANCEMENT,
        title="Phase advancement",
        message="moved",
        related_id=kw.get("related_id"),
    )


def test_persists_and_forwards_each_request(db, factory):
    u1, u2 = factory.user(), factory.user()
    seen = []

    delivered = NotificationDispatcher(sink=seen.append).dispatch(db, [_req(u1.id, related_id=3), _req(u2.id)])

    assert [n.user_id for n in delivered] == [u1.id, u2.id]
    assert [n.id for n in seen] == [n.id for n in delivered]
    rows = db.execute(select(Notification).order_by(Notification.id)).scalars().all()
    assert [(r.user_id, r.type, r.related_id, r.is_read) for r in rows] == [
        (u1.id, "phase_advancement", 3, False),
        (u2.id, "phase_advancement", None, False),
    ]


def test_persist_failure_is_skipped(db, factory, monkeypatch, caplog):
    u1, u2 = factory.user(), factory.user()
    real_commit = db.commit
    calls = {"n": 0}

    def flaky_commit():
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("INSERT", {}, Exception("db down"))
        real_commit()

    monkeypatch.setattr(db, "commit", flaky_commit)

    delivered = NotificationDispatcher().dispatch(db, [_req(u1.id), _req(u2.id)])

    assert [n.user_id for n in delivered] == [u2.id]
    assert "notification persist failed" in caplog.text


def test_empty_request_list(db):
    assert NotificationDispatcher().dispatch(db, []) == []
