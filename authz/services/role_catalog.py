# authz/services/role_catalog.py
from typing import Dict, FrozenSet, Iterable, Mapping, Set

from authz.services.permissions import Permission, permissions_for

ADMIN = "admin"
PROJECT_OWNER = "project_owner"
TASK_OWNER = "task_owner"

P = Permission

DEFAULT_ROLE_PERMISSIONS: Dict[str, FrozenSet[Permission]] = {
    ADMIN: frozenset(Permission),

    # 담당 프로젝트 관리, 태스크 배정
    PROJECT_OWNER: frozenset({
        P.USERS_VIEW_PROFILE, P.USERS_UPDATE_PROFILE, P.USERS_READ,
        P.PROJECTS_CREATE, P.PROJECTS_READ, P.PROJECTS_UPDATE,
        P.PROJECTS_LIST_ASSIGNED, P.PROJECTS_ASSIGN_RESPONSIBLES, P.PROJECTS_MANAGE_FILES,
        P.TASKS_CREATE, P.TASKS_READ, P.TASKS_UPDATE, P.TASKS_DELETE,
        P.TASKS_LIST_ALL, P.TASKS_ASSIGN_USER, P.TASKS_CHANGE_STATUS, P.TASKS_MANAGE_FILES,
        *permissions_for("files"),
    }),

    # 배정된 태스크 처리, 파일 업로드
    TASK_OWNER: frozenset({
        P.USERS_VIEW_PROFILE, P.USERS_UPDATE_PROFILE,
        P.PROJECTS_READ, P.PROJECTS_LIST_ASSIGNED,
        P.TASKS_READ, P.TASKS_UPDATE, P.TASKS_LIST_ASSIGNED,
        P.TASKS_CHANGE_STATUS, P.TASKS_MANAGE_FILES,
        *permissions_for("files"),
    }),
}


class RoleCatalog:
    """
    역할 이름 -> 권한 집합의 정적 테이블입니다.

    실행 중에는 변경되지 않으므로 여러 요청이 동기화 없이 공유합니다.
    알 수 없는 역할 이름은 오류가 아니라 빈 권한 집합으로 취급합니다.
    """

    def __init__(self, table: Mapping[str, Iterable[Permission]] = None):
        source = DEFAULT_ROLE_PERMISSIONS if table is None else table
        self._table: Dict[str, FrozenSet[Permission]] = {
            name: frozenset(perms) for name, perms in source.items()
        }

    def permissions_of(self, role_name: str) -> FrozenSet[Permission]:
        return self._table.get(role_name, frozenset())

    def expand(self, role_names: Iterable[str]) -> FrozenSet[Permission]:
        """여러 역할의 권한 합집합을 반환합니다."""
        permissions: Set[Permission] = set()
        for name in role_names:
            permissions |= self.permissions_of(name)
        return frozenset(permissions)

    def role_names(self):
        return sorted(self._table)

    def roles_granting(self, permission: Permission):
        return sorted(name for name, perms in self._table.items() if permission in perms)
