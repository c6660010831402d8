# tests/services/test_audit_sink.py
import logging

import pytest

from authz.database import models
from authz.repositories.sqlalchemy import SqlalchemyAuditRepository
from authz.services.audit_sink import AuditEvent, AuditSink


class FailingAuditRepository:
    """append 시 항상 실패하는 감사 리포지토리."""

    def __init__(self, session):
        self.session = session

    def append(self, entry):
        raise RuntimeError("audit table is unavailable")


@pytest.fixture
def event() -> AuditEvent:
    return AuditEvent(
        actor_user_id=1, action="assign_role", entity_type="user_role", entity_id=7,
        before={"roles": []}, after={"roles": ["task_owner"]}, ip="127.0.0.1", user_agent="pytest",
    )


def test_record_writes_entry(session_factory, event):
    # === Arrange ===
    sink = AuditSink(session_factory)

    # === Act ===
    entry_id = sink.record(event).result(timeout=5)
    sink.close()

    # === Assert ===
    session = session_factory()
    try:
        stored = SqlalchemyAuditRepository(session).list_by_entity("user_role", 7, 10)
    finally:
        session.close()
    assert [e.id for e in stored] == [entry_id]
    assert stored[0].after == {"roles": ["task_owner"]}
    assert stored[0].actor_user_id == 1


def test_write_failure_is_logged_not_raised(session_factory, event, caplog):
    """기록 실패는 호출자에게 전달되지 않고 운영 로그에만 남아야 합니다."""
    sink = AuditSink(session_factory, repository_factory=FailingAuditRepository)

    with caplog.at_level(logging.ERROR, logger="authz.services.audit_sink"):
        result = sink.record(event).result(timeout=5)
        sink.close()

    assert result is None
    assert "Failed to write audit entry" in caplog.text


def test_record_after_close_returns_none(session_factory, event):
    sink = AuditSink(session_factory)
    sink.close()

    assert sink.record(event) is None


def test_event_to_model():
    entry = AuditEvent(actor_user_id=2, action="delete", entity_type="role", entity_id=4).to_model()

    assert isinstance(entry, models.AuditEntry)
    assert entry.created_at is not None
    assert entry.before is None
