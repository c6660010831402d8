import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from authz.services.context_resolvers import ContextResolver, ResourceContext
from authz.services.exceptions import AuthorizationDenied, ResourceNotFound
from authz.services.permissions import Permission, parse_permission
from authz.services.principal import CurrentUser, RequestAuthzView
from authz.services.role_assignment_store import RoleAssignmentStore
from authz.services.role_catalog import RoleCatalog

logger = logging.getLogger(__name__)

MISSING_BASE_PERMISSION = "missing base permission"
INSUFFICIENT_CONTEXT = "insufficient context"


class Outcome(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    NOT_FOUND = "not_found"


class _NotFound:
    """리졸버가 대상 리소스를 찾지 못했음을 나타내는 표식."""
    def __repr__(self):
        return "NOT_FOUND"


NOT_FOUND = _NotFound()

ContextInput = Union[ResourceContext, _NotFound, None]


@dataclass(frozen=True)
class Decision:
    outcome: Outcome
    required_permission: str
    user_roles: Tuple[str, ...] = ()
    reason: Optional[str] = None
    context: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @property
    def allowed(self) -> bool:
        return self.outcome == Outcome.ALLOW

    def raise_for_outcome(self, not_found_message: str = "Resource not found.") -> None:
        """ALLOW가 아니면 HTTP 계층이 처리할 예외로 바꿔 발생시킵니다."""
        if self.outcome == Outcome.DENY:
            raise AuthorizationDenied(
                f"Access denied ({self.reason}). Required permission: {self.required_permission}",
                user_roles=list(self.user_roles),
                required_permission=self.required_permission,
            )
        if self.outcome == Outcome.NOT_FOUND:
            raise ResourceNotFound(not_found_message)


class AccessDecisionEngine:
    """
    요청자, 권한, 리소스 컨텍스트를 결합하여 허용/거부/없음을 판정합니다.

    판정 순서:
      1. 관리자(슈퍼유저 또는 admin 역할)는 무조건 허용합니다.
      2. 역할 카탈로그로 확장한 권한 집합에 요청 권한이 없으면 거부합니다.
      3. 인스턴스 단위 판단이 필요 없는 권한이면 허용합니다.
      4. 리소스가 없으면 NOT_FOUND를 반환합니다. (403과 구분)
      5. 리소스별 관계(소유/배정/책임) 중 하나라도 성립하면 허용합니다.

    2번의 기본 권한 검사가 존재 여부 확인보다 먼저 이루어지므로, 아무 권한이
    없는 요청자에게는 리소스의 존재가 드러나지 않습니다.
    """

    def __init__(self, catalog: RoleCatalog, role_store: RoleAssignmentStore,
                 resolvers: Mapping[str, ContextResolver]):
        self.catalog = catalog
        self.role_store = role_store
        self.resolvers = dict(resolvers)

    def build_view(self, user: CurrentUser) -> RequestAuthzView:
        """사용자의 활성 역할을 읽어 권한 집합으로 확장합니다."""
        roles = tuple(self.role_store.roles_of(user.id))
        return RequestAuthzView(user=user, roles=roles, permissions=self.catalog.expand(roles))

    def decide(self, view: RequestAuthzView, permission: Permission, context: ContextInput = None) -> Decision:
        """주어진 컨텍스트만으로 판정합니다. 저장소에 접근하지 않습니다."""
        context_data = context.to_dict() if isinstance(context, ResourceContext) else None

        def verdict(outcome: Outcome, reason: Optional[str] = None) -> Decision:
            return Decision(outcome, permission.value, view.roles, reason, context_data)

        if view.is_admin:
            return verdict(Outcome.ALLOW)

        if permission not in view.permissions:
            return verdict(Outcome.DENY, MISSING_BASE_PERMISSION)

        if not permission.requires_context:
            return verdict(Outcome.ALLOW)

        if context is NOT_FOUND:
            return verdict(Outcome.NOT_FOUND)
        if context is None or context.resource_type != permission.resource:
            return verdict(Outcome.DENY, INSUFFICIENT_CONTEXT)

        if context.permits():
            return verdict(Outcome.ALLOW)
        return verdict(Outcome.DENY, INSUFFICIENT_CONTEXT)

    def authorize(self, view: RequestAuthzView, permission: Union[str, Permission],
                  resource_id: Optional[int] = None, parent_id: Optional[int] = None) -> Decision:
        """
        권한 토큰을 검증하고, 필요한 경우에만 컨텍스트를 계산하여 판정합니다.

        Raises:
            UnknownPermissionError: 알 수 없는 권한 토큰일 때.
            ValueError: 생성 요청에 필요한 상위 리소스 ID가 없을 때.
        """
        permission = parse_permission(permission)

        if view.is_admin:
            # 관리자도 컨텍스트는 계산하지만 판정에는 영향을 주지 않습니다.
            context = self._resolve_for_admin(view, permission, resource_id, parent_id)
            return self.decide(view, permission, context)

        if permission not in view.permissions or not permission.requires_context:
            decision = self.decide(view, permission)
        else:
            decision = self.decide(view, permission, self._resolve(view, permission, resource_id, parent_id))

        if not decision.allowed:
            logger.info(
                "Authorization %s: user=%s permission=%s resource=%s roles=%s reason=%s",
                decision.outcome.value, view.user_id, permission.value, resource_id,
                list(view.roles), decision.reason,
            )
        return decision

    def require(self, view: RequestAuthzView, permission: Union[str, Permission],
                resource_id: Optional[int] = None, parent_id: Optional[int] = None) -> Decision:
        """authorize와 같지만, 허용되지 않으면 예외를 발생시킵니다."""
        decision = self.authorize(view, permission, resource_id, parent_id)
        decision.raise_for_outcome()
        return decision

    def _resolve(self, view, permission, resource_id, parent_id) -> ContextInput:
        resolver = self.resolvers.get(permission.resource)
        if resolver is None:
            return None
        try:
            return resolver.resolve(view.user_id, resource_id, parent_id)
        except ResourceNotFound:
            return NOT_FOUND

    def _resolve_for_admin(self, view, permission, resource_id, parent_id) -> ContextInput:
        if not permission.requires_context:
            return None
        try:
            return self._resolve(view, permission, resource_id, parent_id)
        except ValueError:
            return None
