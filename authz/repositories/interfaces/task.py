from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from authz.database import models

class ITaskRepository(ABC):
    @abstractmethod
    def create(self, task_model: models.Task) -> models.Task:
        """새로운 태스크를 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, task_id: int) -> Optional[models.Task]:
        """고유 ID로 특정 태스크를 조회합니다."""
        pass

    @abstractmethod
    def update(self, task: models.Task, changes: Dict[str, Any]) -> models.Task:
        """태스크의 필드를 변경합니다."""
        pass

    @abstractmethod
    def delete(self, task: models.Task) -> bool:
        """태스크를 삭제합니다."""
        pass
