from abc import ABC, abstractmethod
from typing import List, Optional
from authz.database import models

class IRoleRepository(ABC):
    @abstractmethod
    def create(self, role_model: models.Role) -> models.Role:
        """새로운 역할을 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, role_id: int) -> Optional[models.Role]:
        """고유 ID로 특정 역할을 조회합니다."""
        pass

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[models.Role]:
        """이름으로 특정 역할을 조회합니다."""
        pass

    @abstractmethod
    def list_all(self) -> List[models.Role]:
        """모든 역할을 이름순으로 조회합니다."""
        pass

    @abstractmethod
    def count_active_assignments(self, role_id: int) -> int:
        """해당 역할을 참조하는 활성 할당의 개수를 반환합니다."""
        pass

    @abstractmethod
    def delete(self, role: models.Role) -> bool:
        """역할을 삭제합니다."""
        pass
