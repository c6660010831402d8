# tests/services/test_audit_service.py
import pytest
from unittest.mock import MagicMock
from datetime import datetime

from authz.database import models
from authz.repositories.interfaces import IAuditRepository
from authz.services.audit_service import AuditService


@pytest.fixture
def mock_audit_repo() -> MagicMock:
    """IAuditRepository에 대한 모의 객체를 생성합니다."""
    return MagicMock(spec=IAuditRepository)


def test_list_recent_serializes_entries(mock_audit_repo):
    mock_audit_repo.list_recent.return_value = [
        models.AuditEntry(id=1, actor_user_id=2, action="create", entity_type="project", entity_id=3,
                          created_at=datetime(2024, 5, 1, 12, 0, 0)),
    ]

    entries = AuditService(mock_audit_repo, retention_days=30).list_recent(10)

    assert entries[0]["action"] == "create"
    assert entries[0]["created_at"] == "2024-05-01T12:00:00"
    mock_audit_repo.list_recent.assert_called_once_with(10)


def test_list_recent_rejects_non_positive_limit(mock_audit_repo):
    with pytest.raises(ValueError):
        AuditService(mock_audit_repo, retention_days=30).list_recent(0)


def test_purge_uses_retention_cutoff(mock_audit_repo):
    # === Arrange ===
    mock_audit_repo.delete_older_than.return_value = 4
    service = AuditService(mock_audit_repo, retention_days=30)

    # === Act ===
    deleted = service.purge_older_than(now=datetime(2024, 5, 31))

    # === Assert ===
    assert deleted == 4
    mock_audit_repo.delete_older_than.assert_called_once_with(datetime(2024, 5, 1))


def test_purge_rejects_negative_days(mock_audit_repo):
    with pytest.raises(ValueError):
        AuditService(mock_audit_repo, retention_days=30).purge_older_than(days=-1)
