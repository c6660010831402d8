from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
from authz.database import models

class IProjectRepository(ABC):
    @abstractmethod
    def create(self, project_model: models.Project) -> models.Project:
        """새로운 프로젝트를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, project_id: int) -> Optional[models.Project]:
        """고유 ID로 특정 프로젝트를 조회합니다."""
        pass

    @abstractmethod
    def update(self, project: models.Project, changes: Dict[str, Any]) -> models.Project:
        """프로젝트의 필드를 변경합니다."""
        pass

    @abstractmethod
    def delete(self, project: models.Project) -> bool:
        """특정 프로젝트를 데이터베이스에서 삭제합니다."""
        pass

    @abstractmethod
    def find_responsible(self, project_id: int, user_id: int, responsibility: str) -> Optional[models.ProjectResponsible]:
        """책임 태그까지 일치하는 책임자 행을 활성 여부와 관계없이 조회합니다."""
        pass

    @abstractmethod
    def add_responsible(self, project_id: int, user_id: int, responsibility: str, assigned_by: Optional[int]) -> models.ProjectResponsible:
        """
        프로젝트 책임자를 지정합니다. 같은 (프로젝트, 사용자, 책임) 행이
        비활성 상태로 존재하면 새로 만들지 않고 재활성화합니다.
        """
        pass

    @abstractmethod
    def remove_responsible(self, project_id: int, user_id: int, responsibility: Optional[str] = None) -> int:
        """책임자 지정을 비활성화하고, 비활성화된 행 수를 반환합니다."""
        pass

    @abstractmethod
    def is_responsible(self, project_id: int, user_id: int) -> bool:
        """사용자가 어떤 책임 태그로든 프로젝트의 활성 책임자인지 확인합니다."""
        pass

    @abstractmethod
    def list_responsibles(self, project_id: int) -> List[Dict[str, Any]]:
        """
        프로젝트의 활성 책임자 목록을 조회합니다.

        Returns:
            (예: [{'user_id': 1, 'username': 'alice', 'responsibility': 'principal'}])
        """
        pass
