"""
authz/services/permissions.py

권한 토큰(`<resource>:<action>`)의 닫힌 목록입니다.

HTTP 경계에서는 문자열을 그대로 사용하지만, 내부에서는 `parse_permission`으로
검증한 `Permission` 값만 다룹니다. 오타가 난 토큰은 요청 초기에 거부됩니다.
"""
from enum import Enum
from typing import Union

from authz.services.exceptions import UnknownPermissionError


class Permission(str, Enum):
    # Users
    USERS_CREATE = "users:create"
    USERS_READ = "users:read"
    USERS_UPDATE = "users:update"
    USERS_DELETE = "users:delete"
    USERS_LIST_ALL = "users:list_all"
    USERS_MANAGE_ROLES = "users:manage_roles"
    USERS_VIEW_PROFILE = "users:view_profile"
    USERS_UPDATE_PROFILE = "users:update_profile"

    # Projects
    PROJECTS_CREATE = "projects:create"
    PROJECTS_READ = "projects:read"
    PROJECTS_UPDATE = "projects:update"
    PROJECTS_DELETE = "projects:delete"
    PROJECTS_LIST_ALL = "projects:list_all"
    PROJECTS_LIST_ASSIGNED = "projects:list_assigned"
    PROJECTS_ASSIGN_RESPONSIBLES = "projects:assign_responsibles"
    PROJECTS_MANAGE_FILES = "projects:manage_files"

    # Tasks
    TASKS_CREATE = "tasks:create"
    TASKS_READ = "tasks:read"
    TASKS_UPDATE = "tasks:update"
    TASKS_DELETE = "tasks:delete"
    TASKS_LIST_ALL = "tasks:list_all"
    TASKS_LIST_ASSIGNED = "tasks:list_assigned"
    TASKS_ASSIGN_USER = "tasks:assign_user"
    TASKS_CHANGE_STATUS = "tasks:change_status"
    TASKS_MANAGE_FILES = "tasks:manage_files"

    # Files
    FILES_UPLOAD = "files:upload"
    FILES_DOWNLOAD = "files:download"
    FILES_DELETE = "files:delete"
    FILES_LIST = "files:list"
    FILES_VIEW_METADATA = "files:view_metadata"

    # Roles
    ROLES_CREATE = "roles:create"
    ROLES_READ = "roles:read"
    ROLES_UPDATE = "roles:update"
    ROLES_DELETE = "roles:delete"
    ROLES_ASSIGN = "roles:assign"
    ROLES_REMOVE = "roles:remove"

    # Logs / Audit
    LOGS_READ = "logs:read"
    LOGS_EXPORT = "logs:export"
    LOGS_DELETE = "logs:delete"

    @property
    def resource(self) -> str:
        return self.value.split(":", 1)[0]

    @property
    def action(self) -> str:
        return self.value.split(":", 1)[1]

    @property
    def requires_context(self) -> bool:
        """특정 리소스 인스턴스의 컨텍스트로 추가 판단이 필요한 권한인지 여부."""
        return self in CONTEXT_REFINED


# 목록/통계/관리 권한은 역할만으로 판단하고, 아래 권한은 인스턴스 관계를 확인합니다.
CONTEXT_REFINED = frozenset({
    Permission.USERS_VIEW_PROFILE,
    Permission.USERS_UPDATE_PROFILE,
    Permission.PROJECTS_CREATE,
    Permission.PROJECTS_READ,
    Permission.PROJECTS_UPDATE,
    Permission.PROJECTS_DELETE,
    Permission.PROJECTS_ASSIGN_RESPONSIBLES,
    Permission.PROJECTS_MANAGE_FILES,
    Permission.TASKS_CREATE,
    Permission.TASKS_READ,
    Permission.TASKS_UPDATE,
    Permission.TASKS_DELETE,
    Permission.TASKS_ASSIGN_USER,
    Permission.TASKS_CHANGE_STATUS,
    Permission.TASKS_MANAGE_FILES,
    Permission.FILES_UPLOAD,
    Permission.FILES_DOWNLOAD,
    Permission.FILES_DELETE,
    Permission.FILES_VIEW_METADATA,
})


def parse_permission(token: Union[str, Permission]) -> Permission:
    """
    문자열 권한 토큰을 검증하여 Permission 값으로 변환합니다.

    Raises:
        UnknownPermissionError: 목록에 없는 토큰일 때.
    """
    if isinstance(token, Permission):
        return token
    try:
        return Permission(token)
    except ValueError:
        raise UnknownPermissionError(f"Unknown permission '{token}'.")


def permissions_for(resource: str):
    return [p for p in Permission if p.resource == resource]
