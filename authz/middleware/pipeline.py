"""
authz/middleware/pipeline.py

요청 하나를 다음 순서로 처리합니다.

    Authenticate -> AttachRolesAndPermissions -> (ResolveContext -> Decide) -> Handler -> (Audit)

핸들러 실행 전에 요청을 끝낼 수 있는 단계는 인증(401)과 판정(403/404)뿐입니다.
감사 기록은 응답 본문이 전송된 뒤 WSGI 서버가 호출하는 close()에서 예약됩니다.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from authz.services.access_decision_service import AccessDecisionEngine
from authz.services.audit_service import AuditService
from authz.services.audit_sink import AuditEvent, AuditSink
from authz.services.exceptions import TokenInvalidError
from authz.services.identity_service import IdentityService
from authz.services.permissions import Permission
from authz.services.principal import RequestAuthzView
from authz.services.rate_limiter import UserRateLimiter
from authz.services.role_assignment_store import RoleAssignmentStore
from authz.services.role_catalog import RoleCatalog
from authz.services.tracker_service import TrackerService

logger = logging.getLogger(__name__)


@dataclass
class AuthzContext:
    """요청 처리에 필요한 협력 객체 묶음. 전역 싱글턴 대신 명시적으로 전달합니다."""
    catalog: RoleCatalog
    role_store: RoleAssignmentStore
    engine: AccessDecisionEngine
    identity: IdentityService
    audit_sink: AuditSink
    audit_service: AuditService
    rate_limiter: UserRateLimiter
    tracker: TrackerService


@dataclass
class HandlerResult:
    status: str
    payload: Any = None
    entity_id: Optional[int] = None
    before: Any = None
    after: Any = None
    audit: bool = True


@dataclass(frozen=True)
class Route:
    method: str
    pattern: str
    handler: Callable[..., HandlerResult]
    permission: Optional[Permission] = None
    public: bool = False
    resource_arg: Optional[int] = None
    parent_arg: Optional[int] = None
    audit: Optional[Tuple[str, str]] = None  # (action, entity_type)


class ClosingResponse(list):
    """
    WSGI 응답 본문. 서버가 전송을 마친 뒤 close()를 호출하면
    등록된 후처리 훅을 실행합니다. 훅의 실패는 로그로만 남깁니다.
    """

    def __init__(self, chunks, hooks: List[Callable[[], Any]] = None):
        super().__init__(chunks)
        self.hooks = list(hooks or [])

    def close(self):
        hooks, self.hooks = self.hooks, []
        for hook in hooks:
            try:
                hook()
            except Exception:
                logger.exception("Post-response hook failed")


def extract_token(environ: Dict[str, Any]) -> Optional[str]:
    header = environ.get("HTTP_AUTHORIZATION", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return environ.get("HTTP_X_AUTH_TOKEN") or None


def _int_arg(path_args, index: Optional[int]) -> Optional[int]:
    if index is None:
        return None
    return int(path_args[index])


class AuthzPipeline:
    def __init__(self, ctx: AuthzContext):
        self.ctx = ctx

    def authenticate(self, environ) -> RequestAuthzView:
        token = extract_token(environ)
        if not token:
            raise TokenInvalidError("Missing access token.")
        user = self.ctx.identity.validate_token(token)
        view = self.ctx.engine.build_view(user)
        self.ctx.rate_limiter.hit(user.id)
        return view

    def run(self, environ, route: Route, path_args) -> Tuple[HandlerResult, List[Callable[[], Any]]]:
        """
        라우트 하나를 파이프라인에 따라 실행합니다.

        Returns:
            핸들러 결과와 응답 전송 후 실행할 훅 목록.

        Raises:
            TokenInvalidError, AuthenticationError: 인증 실패 시.
            AuthorizationDenied, ResourceNotFound: 판정 결과가 허용이 아닐 때.
        """
        view = None if route.public else self.authenticate(environ)

        if route.permission is not None:
            decision = self.ctx.engine.authorize(
                view, route.permission,
                resource_id=_int_arg(path_args, route.resource_arg),
                parent_id=_int_arg(path_args, route.parent_arg),
            )
            decision.raise_for_outcome()
            view = replace(view, resource_context=decision.context)

        result = route.handler(self.ctx, view, environ, *path_args)

        hooks = []
        if route.audit and result.audit and view is not None and not result.status.startswith(("4", "5")):
            hooks.append(self._audit_hook(environ, route, view, result))
        return result, hooks

    def _audit_hook(self, environ, route: Route, view: RequestAuthzView, result: HandlerResult):
        action, entity_type = route.audit
        event = AuditEvent(
            actor_user_id=view.user_id,
            action=action,
            entity_type=entity_type,
            entity_id=result.entity_id,
            before=result.before,
            after=result.after,
            ip=environ.get("REMOTE_ADDR"),
            user_agent=environ.get("HTTP_USER_AGENT"),
        )
        sink = self.ctx.audit_sink
        return lambda: sink.record(event)
