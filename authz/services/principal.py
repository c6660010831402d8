# authz/services/principal.py
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from authz.services.permissions import Permission
from authz.services.role_catalog import ADMIN


@dataclass(frozen=True)
class CurrentUser:
    """인증 단계가 만들어 내는 요청자 정보."""
    id: int
    username: str
    is_superuser: bool = False


@dataclass(frozen=True)
class RequestAuthzView:
    """
    역할/권한 로딩 직후 한 번 만들어져 핸들러까지 그대로 전달되는 값입니다.
    요청 객체에 속성을 덧붙이는 대신 이 값을 명시적으로 넘깁니다.
    """
    user: CurrentUser
    roles: Tuple[str, ...] = ()
    permissions: FrozenSet[Permission] = field(default_factory=frozenset)
    # 판정 단계에서 계산된 리소스 컨텍스트. (정보 제공용, 판정에는 다시 쓰이지 않음)
    resource_context: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.user.is_superuser or ADMIN in self.roles

    def has_permission(self, permission: Permission) -> bool:
        return self.is_admin or permission in self.permissions
