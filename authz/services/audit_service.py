from datetime import datetime, timedelta
import logging
from typing import Any, Dict, List

from authz.config import get_settings
from authz.database import models
from authz.repositories.interfaces import IAuditRepository

logger = logging.getLogger(__name__)


def serialize_entry(entry: models.AuditEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "actor_user_id": entry.actor_user_id,
        "action": entry.action,
        "entity_type": entry.entity_type,
        "entity_id": entry.entity_id,
        "before": entry.before,
        "after": entry.after,
        "ip": entry.ip,
        "user_agent": entry.user_agent,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


class AuditService:
    """감사 기록 조회와 보존 기간 정리를 담당합니다."""

    def __init__(self, audit_repo: IAuditRepository, retention_days: int = None):
        self.audit_repo = audit_repo
        self.retention_days = get_settings().audit_retention_days if retention_days is None else retention_days

    def list_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        if limit <= 0:
            raise ValueError("limit must be positive.")
        return [serialize_entry(e) for e in self.audit_repo.list_recent(limit)]

    def list_by_entity(self, entity_type: str, entity_id: int, limit: int = 50) -> List[Dict[str, Any]]:
        return [serialize_entry(e) for e in self.audit_repo.list_by_entity(entity_type, entity_id, limit)]

    def purge_older_than(self, days: int = None, now: datetime = None) -> int:
        """
        보존 기간보다 오래된 감사 기록을 삭제합니다.

        Args:
            days: 보존 일수. 생략하면 설정값(AUDIT_RETENTION_DAYS)을 사용합니다.
            now: 기준 시각. 테스트용.

        Returns:
            삭제된 기록 수.
        """
        days = self.retention_days if days is None else days
        if days < 0:
            raise ValueError("Retention days must not be negative.")
        cutoff = (now or datetime.now()) - timedelta(days=days)
        deleted = self.audit_repo.delete_older_than(cutoff)
        logger.info("Purged %d audit entries older than %s", deleted, cutoff.isoformat())
        return deleted
