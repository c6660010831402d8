from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from authz.database import models

class IAuditRepository(ABC):
    @abstractmethod
    def append(self, entry: models.AuditEntry) -> models.AuditEntry:
        """감사 기록을 추가합니다. 기존 기록은 수정하지 않습니다."""
        pass

    @abstractmethod
    def list_recent(self, limit: int = 100) -> List[models.AuditEntry]:
        """최근 감사 기록을 최신순으로 조회합니다."""
        pass

    @abstractmethod
    def list_by_entity(self, entity_type: str, entity_id: int, limit: int = 50) -> List[models.AuditEntry]:
        """특정 엔터티에 대한 감사 기록을 최신순으로 조회합니다."""
        pass

    @abstractmethod
    def delete_older_than(self, cutoff: datetime) -> int:
        """cutoff 이전에 생성된 기록을 삭제하고 삭제된 행 수를 반환합니다."""
        pass
