from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from authz.database import models

class IUserRoleRepository(ABC):
    @abstractmethod
    def find(self, user_id: int, role_id: int) -> Optional[models.UserRole]:
        """(user_id, role_id) 쌍의 할당 행을 활성 여부와 관계없이 조회합니다."""
        pass

    @abstractmethod
    def create(self, user_id: int, role_id: int, assigned_by: Optional[int]) -> models.UserRole:
        """새 활성 할당 행을 추가합니다."""
        pass

    @abstractmethod
    def reactivate(self, assignment: models.UserRole, assigned_by: Optional[int]) -> models.UserRole:
        """비활성 행을 다시 활성화하고 assigned_by와 assigned_at을 갱신합니다."""
        pass

    @abstractmethod
    def deactivate(self, assignment: models.UserRole) -> models.UserRole:
        """할당을 비활성화합니다. (soft delete)"""
        pass

    @abstractmethod
    def replace_active_roles(self, user_id: int, role_ids: Sequence[int], assigned_by: Optional[int]) -> List[models.UserRole]:
        """
        사용자의 모든 활성 역할을 비활성화한 뒤 주어진 역할을 할당합니다.
        전체 과정은 하나의 트랜잭션으로 커밋되어, 다른 읽기 요청은
        변경 전 또는 변경 후의 집합만 관찰합니다.
        """
        pass

    @abstractmethod
    def list_active_role_names(self, user_id: int) -> List[str]:
        """사용자의 활성 역할 이름을 이름순으로 반환합니다."""
        pass

    @abstractmethod
    def list_history(self, user_id: int) -> List[models.UserRole]:
        """비활성 행을 포함한 할당 이력을 최신순으로 반환합니다."""
        pass

    @abstractmethod
    def list_user_ids_with_role(self, role_id: int) -> List[int]:
        """해당 역할이 활성 상태로 할당된 사용자 ID 목록을 반환합니다."""
        pass

    @abstractmethod
    def delete(self, assignment: models.UserRole) -> bool:
        """할당 행을 영구 삭제합니다. 관리 목적의 정리 작업에만 사용합니다."""
        pass
