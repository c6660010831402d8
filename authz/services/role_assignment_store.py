import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, List, Optional, Sequence, Union

from authz.database import models
from authz.repositories.interfaces import IUserRepository, IRoleRepository, IUserRoleRepository
from authz.services.exceptions import (
    UserNotFoundError, RoleNotFoundError, RoleInUseError, RoleAlreadyExistsError
)

logger = logging.getLogger(__name__)

RoleIdentifier = Union[int, str]


class AssignmentStatus(str, Enum):
    CREATED = "created"
    REACTIVATED = "reactivated"
    ALREADY_ACTIVE = "already_active"


@dataclass(frozen=True)
class AssignmentResult:
    assignment_id: int
    status: AssignmentStatus

    @property
    def changed(self) -> bool:
        return self.status != AssignmentStatus.ALREADY_ACTIVE


class RoleAssignmentStore:
    """사용자 <-> 역할 할당(user_roles)을 관리하는 서비스입니다."""

    def __init__(self, user_repo: IUserRepository, role_repo: IRoleRepository, user_role_repo: IUserRoleRepository):
        """
        RoleAssignmentStore를 초기화합니다.

        Args:
            user_repo: 사용자 존재 여부 확인용 리포지토리.
            role_repo: 역할 데이터에 접근하기 위한 리포지토리.
            user_role_repo: 할당 행(user_roles)에 접근하기 위한 리포지토리.
        """
        self.user_repo = user_repo
        self.role_repo = role_repo
        self.user_role_repo = user_role_repo

    # ------------------------------------------------------------------
    # 할당 / 회수 / 동기화
    # ------------------------------------------------------------------

    def assign(self, user_id: int, role: RoleIdentifier, assigned_by: Optional[int] = None) -> AssignmentResult:
        """
        사용자에게 역할을 부여합니다. 여러 번 호출해도 결과는 같습니다.

        - 활성 행이 이미 있으면 아무것도 바꾸지 않습니다. (ALREADY_ACTIVE)
        - 비활성 행이 있으면 같은 행을 재활성화합니다. (REACTIVATED)
        - 행이 없으면 새로 추가합니다. (CREATED)

        Raises:
            UserNotFoundError: 사용자를 찾을 수 없을 때.
            RoleNotFoundError: 역할을 찾을 수 없을 때.
        """
        self._require_user(user_id)
        role_model = self._require_role(role)

        existing = self.user_role_repo.find(user_id, role_model.id)
        if existing and existing.active:
            logger.info("User %s already holds role '%s'", user_id, role_model.name)
            return AssignmentResult(existing.id, AssignmentStatus.ALREADY_ACTIVE)

        if existing:
            assignment = self.user_role_repo.reactivate(existing, assigned_by)
            status = AssignmentStatus.REACTIVATED
        else:
            assignment = self.user_role_repo.create(user_id, role_model.id, assigned_by)
            status = AssignmentStatus.CREATED

        logger.info("Role '%s' %s for user %s by %s", role_model.name, status.value, user_id, assigned_by)
        return AssignmentResult(assignment.id, status)

    def remove(self, user_id: int, role: RoleIdentifier) -> bool:
        """
        역할을 회수합니다. (soft delete)
        활성 할당이 없으면 오류 없이 False를 반환합니다.

        Raises:
            RoleNotFoundError: 역할을 찾을 수 없을 때.
        """
        role_model = self._require_role(role)
        existing = self.user_role_repo.find(user_id, role_model.id)
        if not existing or not existing.active:
            return False

        self.user_role_repo.deactivate(existing)
        logger.info("Role '%s' removed from user %s", role_model.name, user_id)
        return True

    def sync(self, user_id: int, roles: Sequence[RoleIdentifier], assigned_by: Optional[int] = None) -> List[str]:
        """
        사용자의 활성 역할을 주어진 집합으로 교체합니다.

        모든 역할 식별자를 먼저 검증한 뒤, 비활성화와 재할당을 하나의
        트랜잭션에서 수행합니다. 동시에 읽는 요청은 변경 전 또는 변경 후의
        집합만 보게 됩니다.

        Returns:
            동기화 이후의 활성 역할 이름 목록.

        Raises:
            UserNotFoundError: 사용자를 찾을 수 없을 때.
            RoleNotFoundError: 식별자 중 하나라도 역할을 찾을 수 없을 때.
        """
        self._require_user(user_id)
        role_ids = [self._require_role(role).id for role in roles]

        self.user_role_repo.replace_active_roles(user_id, role_ids, assigned_by)
        current = self.roles_of(user_id)
        logger.info("Roles of user %s synced to %s by %s", user_id, current, assigned_by)
        return current

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def roles_of(self, user_id: int) -> List[str]:
        """활성 역할 이름만 이름순으로 반환합니다."""
        return self.user_role_repo.list_active_role_names(user_id)

    def has_role(self, user_id: int, role_name: str) -> bool:
        return role_name in self.roles_of(user_id)

    def history(self, user_id: int) -> List[Dict[str, Any]]:
        """
        비활성 행을 포함한 사용자의 역할 할당 이력을 조회합니다.

        Raises:
            UserNotFoundError: 사용자를 찾을 수 없을 때.
        """
        self._require_user(user_id)
        return [
            {
                "id": row.id,
                "role": row.role.name if row.role else None,
                "active": row.active,
                "assigned_by": row.assigned_by,
                "assigned_at": row.assigned_at.isoformat() if row.assigned_at else None,
            }
            for row in self.user_role_repo.list_history(user_id)
        ]

    def users_with_role(self, role: RoleIdentifier) -> List[int]:
        role_model = self._require_role(role)
        return self.user_role_repo.list_user_ids_with_role(role_model.id)

    def purge(self, user_id: int, role: RoleIdentifier) -> bool:
        """
        할당 행을 영구 삭제합니다. 관리자 정리 작업 전용입니다.

        Raises:
            RoleNotFoundError: 역할을 찾을 수 없을 때.
        """
        role_model = self._require_role(role)
        existing = self.user_role_repo.find(user_id, role_model.id)
        if not existing:
            return False
        logger.warning("Purging role assignment %s (user %s, role '%s')", existing.id, user_id, role_model.name)
        return self.user_role_repo.delete(existing)

    # ------------------------------------------------------------------
    # 역할 관리
    # ------------------------------------------------------------------

    def list_roles(self) -> List[Dict[str, Any]]:
        return [{"id": r.id, "name": r.name} for r in self.role_repo.list_all()]

    def create_role(self, name: str) -> Dict[str, Any]:
        """
        새로운 역할을 생성합니다.

        Raises:
            ValueError: 이름이 비어 있을 때.
            RoleAlreadyExistsError: 같은 이름의 역할이 이미 있을 때.
        """
        if not name or not name.strip():
            raise ValueError("Role name is required.")
        name = name.strip()
        if self.role_repo.find_by_name(name):
            raise RoleAlreadyExistsError(f"Role '{name}' already exists.")
        role = self.role_repo.create(models.Role(name=name))
        return {"id": role.id, "name": role.name}

    def delete_role(self, role: RoleIdentifier) -> bool:
        """
        역할을 삭제합니다. 활성 할당이 남아 있으면 거부합니다.

        Raises:
            RoleNotFoundError: 역할을 찾을 수 없을 때.
            RoleInUseError: 역할이 아직 사용자에게 할당되어 있을 때.
        """
        role_model = self._require_role(role)
        in_use = self.role_repo.count_active_assignments(role_model.id)
        if in_use > 0:
            raise RoleInUseError(f"Role '{role_model.name}' is assigned to {in_use} user(s).")
        return self.role_repo.delete(role_model)

    # ------------------------------------------------------------------

    def _require_user(self, user_id: int) -> models.User:
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        return user

    def _require_role(self, role: RoleIdentifier) -> models.Role:
        # 정수는 ID, 문자열은 이름으로 조회합니다.
        if isinstance(role, int) and not isinstance(role, bool):
            role_model = self.role_repo.find_by_id(role)
        else:
            role_model = self.role_repo.find_by_name(str(role))
        if not role_model:
            raise RoleNotFoundError(f"Role '{role}' not found.")
        return role_model
