from datetime import datetime
from typing import List
from sqlalchemy.orm import Session
from authz.database import models
from authz.repositories.interfaces import IAuditRepository

class SqlalchemyAuditRepository(IAuditRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def append(self, entry: models.AuditEntry) -> models.AuditEntry:
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def list_recent(self, limit: int = 100) -> List[models.AuditEntry]:
        return self.db.query(models.AuditEntry).order_by(
            models.AuditEntry.created_at.desc(), models.AuditEntry.id.desc()
        ).limit(limit).all()

    def list_by_entity(self, entity_type: str, entity_id: int, limit: int = 50) -> List[models.AuditEntry]:
        return self.db.query(models.AuditEntry).filter(
            models.AuditEntry.entity_type == entity_type,
            models.AuditEntry.entity_id == entity_id,
        ).order_by(models.AuditEntry.created_at.desc(), models.AuditEntry.id.desc()).limit(limit).all()

    def delete_older_than(self, cutoff: datetime) -> int:
        count = self.db.query(models.AuditEntry).filter(
            models.AuditEntry.created_at < cutoff
        ).delete(synchronize_session=False)
        self.db.commit()
        return count
