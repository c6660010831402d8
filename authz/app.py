# authz/app.py
from wsgiref.simple_server import make_server
from urllib.parse import parse_qs
import json
import logging
import re
import sys
import traceback

from authz.config import get_settings
from authz.database.database import SessionLocal
from authz.middleware.pipeline import AuthzContext, AuthzPipeline, ClosingResponse, HandlerResult, Route, extract_token
from authz.repositories.sqlalchemy import (
    SqlalchemyUserRepository, SqlalchemyRoleRepository, SqlalchemyUserRoleRepository,
    SqlalchemyProjectRepository, SqlalchemyTaskRepository, SqlalchemyFileRepository,
    SqlalchemyAuditRepository,
)
from authz.services.access_decision_service import AccessDecisionEngine
from authz.services.audit_service import AuditService
from authz.services.audit_sink import AuditSink
from authz.services.context_resolvers import build_resolvers
from authz.services.exceptions import *
from authz.services.identity_service import IdentityService, TokenStore
from authz.services.permissions import Permission as P
from authz.services.rate_limiter import UserRateLimiter
from authz.services.role_assignment_store import RoleAssignmentStore
from authz.services.role_catalog import RoleCatalog
from authz.services.tracker_service import TrackerService
from authz.utils.logger import configure_logging

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------
## 요청 처리 유틸리티 함수
# --------------------------------------------------------------------------

def get_request_data(environ):
    try:
        content_length = int(environ.get("CONTENT_LENGTH") or 0)
        return json.loads(environ["wsgi.input"].read(content_length)) if content_length > 0 else {}
    except (ValueError, json.JSONDecodeError):
        raise ValueError("Invalid or missing JSON body.")

def get_query(environ):
    return {k: v[-1] for k, v in parse_qs(environ.get("QUERY_STRING", "")).items()}

def role_identifier(value):
    return int(value) if isinstance(value, str) and value.isdigit() else value

ERROR_STATUSES = [
    (TokenInvalidError, "401 Unauthorized"),
    (AuthenticationError, "401 Unauthorized"),
    (AuthorizationDenied, "403 Forbidden"),
    (ResourceNotFound, "404 Not Found"),
    (RoleInUseError, "409 Conflict"),
    (RoleAlreadyExistsError, "409 Conflict"),
    (UserCreationError, "400 Bad Request"),
    (ValueError, "400 Bad Request"),
    (RateLimitExceeded, "429 Too Many Requests"),
]

def handle_exception(e):
    for error_type, status in ERROR_STATUSES:
        if isinstance(e, error_type):
            body = {"success": False, "message": str(e)}
            if isinstance(e, AuthorizationDenied):
                body["userRoles"] = e.user_roles
                body["requiredPermission"] = e.required_permission
            return status, body

    logger.exception("Unhandled error while processing request")
    body = {"success": False, "message": "Internal server error"}
    if not get_settings().is_production:
        body["stack"] = traceback.format_exc()
    return "500 Internal Server Error", body

def ok(payload=None, status="200 OK", **audit):
    body = None if payload is None else {"success": True, "data": payload}
    return HandlerResult(status, body, **audit)

# --------------------------------------------------------------------------
## 핸들러 함수 (ctx, view, environ, *path_args)
# --------------------------------------------------------------------------

def auth_tokens_handler(ctx, view, environ):
    data = get_request_data(environ)
    token = ctx.identity.authenticate(data.get("username"), data.get("password"))
    return ok(token, "201 Created")

def revoke_token_handler(ctx, view, environ):
    ctx.identity.revoke_token(extract_token(environ))
    return ok(status="204 No Content")

def list_users_handler(ctx, view, environ):
    return ok({"users": ctx.identity.list_users()})

def create_user_handler(ctx, view, environ):
    data = get_request_data(environ)
    user = ctx.identity.create_user(data.get("username"), data.get("password"))
    return ok(user, "201 Created", entity_id=user["id"], after=user)

def get_user_handler(ctx, view, environ, user_id):
    user = ctx.identity.get_user(int(user_id))
    user["roles"] = ctx.role_store.roles_of(int(user_id))
    return ok(user)

def delete_user_handler(ctx, view, environ, user_id):
    before = ctx.identity.get_user(int(user_id))
    ctx.identity.delete_user(int(user_id))
    return ok(status="204 No Content", entity_id=int(user_id), before=before)

def set_superuser_handler(ctx, view, environ, user_id):
    data = get_request_data(environ)
    if not isinstance(data.get("is_superuser"), bool):
        raise ValueError("'is_superuser' must be a boolean.")
    change = ctx.identity.set_superuser(int(user_id), data["is_superuser"])
    return ok(change["after"], entity_id=int(user_id), before=change["before"],
              after=change["after"], audit=change["changed"])

def list_user_roles_handler(ctx, view, environ, user_id):
    ctx.identity.get_user(int(user_id))
    return ok({"user_id": int(user_id), "roles": ctx.role_store.roles_of(int(user_id))})

def user_role_history_handler(ctx, view, environ, user_id):
    return ok({"user_id": int(user_id), "history": ctx.role_store.history(int(user_id))})

def sync_user_roles_handler(ctx, view, environ, user_id):
    roles = get_request_data(environ).get("roles")
    if not isinstance(roles, list):
        raise ValueError("'roles' must be a list of role names or ids.")
    previous = ctx.role_store.roles_of(int(user_id))
    current = ctx.role_store.sync(int(user_id), roles, assigned_by=view.user_id)
    return ok({"user_id": int(user_id), "previousRoles": previous, "currentRoles": current},
              entity_id=int(user_id), before={"roles": previous}, after={"roles": current})

def assign_role_handler(ctx, view, environ, user_id, role):
    result = ctx.role_store.assign(int(user_id), role_identifier(role), assigned_by=view.user_id)
    payload = {"assignment_id": result.assignment_id, "status": result.status.value}
    return ok(payload, entity_id=int(user_id), after={"role": role, "status": result.status.value},
              audit=result.changed)

def remove_role_handler(ctx, view, environ, user_id, role):
    removed = ctx.role_store.remove(int(user_id), role_identifier(role))
    return ok({"removed": removed}, entity_id=int(user_id), before={"role": role}, audit=removed)

def purge_role_assignment_handler(ctx, view, environ, user_id, role):
    purged = ctx.role_store.purge(int(user_id), role_identifier(role))
    return ok({"purged": purged}, entity_id=int(user_id), before={"role": role}, audit=purged)

def list_roles_handler(ctx, view, environ):
    return ok({"roles": ctx.role_store.list_roles()})

def create_role_handler(ctx, view, environ):
    role = ctx.role_store.create_role(get_request_data(environ).get("name"))
    return ok(role, "201 Created", entity_id=role["id"], after=role)

def delete_role_handler(ctx, view, environ, role):
    ctx.role_store.delete_role(role_identifier(role))
    return ok(status="204 No Content", before={"role": role})

def create_project_handler(ctx, view, environ):
    data = get_request_data(environ)
    project = ctx.tracker.create_project(data.get("name"), view.user_id, data.get("description"))
    return ok(project, "201 Created", entity_id=project["id"], after=project)

def get_project_handler(ctx, view, environ, project_id):
    return ok(ctx.tracker.get_project(int(project_id)))

def update_project_handler(ctx, view, environ, project_id):
    before = ctx.tracker.get_project(int(project_id))
    before.pop("responsibles", None)
    project = ctx.tracker.update_project(int(project_id), get_request_data(environ))
    return ok(project, entity_id=project["id"], before=before, after=project)

def delete_project_handler(ctx, view, environ, project_id):
    ctx.tracker.delete_project(int(project_id))
    return ok(status="204 No Content", entity_id=int(project_id))

def assign_responsible_handler(ctx, view, environ, project_id, user_id):
    responsibility = get_request_data(environ).get("responsibility", "collaborator")
    row = ctx.tracker.assign_responsible(int(project_id), int(user_id), responsibility, assigned_by=view.user_id)
    return ok(row, entity_id=int(project_id), after=row)

def remove_responsible_handler(ctx, view, environ, project_id, user_id):
    removed = ctx.tracker.remove_responsible(int(project_id), int(user_id), get_query(environ).get("responsibility"))
    return ok({"removed": removed}, entity_id=int(project_id),
              before={"user_id": int(user_id)}, audit=removed > 0)

def create_task_handler(ctx, view, environ, project_id):
    data = get_request_data(environ)
    task = ctx.tracker.create_task(int(project_id), data.get("title"), data.get("assigned_user_id"))
    return ok(task, "201 Created", entity_id=task["id"], after=task)

def get_task_handler(ctx, view, environ, task_id):
    return ok(ctx.tracker.get_task(int(task_id)))

def update_task_handler(ctx, view, environ, task_id):
    before = ctx.tracker.get_task(int(task_id))
    task = ctx.tracker.update_task(int(task_id), get_request_data(environ))
    return ok(task, entity_id=task["id"], before=before, after=task)

def delete_task_handler(ctx, view, environ, task_id):
    before = ctx.tracker.get_task(int(task_id))
    ctx.tracker.delete_task(int(task_id))
    return ok(status="204 No Content", entity_id=int(task_id), before=before)

def upload_file_handler(ctx, view, environ, task_id):
    stored = ctx.tracker.register_file(int(task_id), get_request_data(environ).get("filename"), view.user_id)
    return ok(stored, "201 Created", entity_id=stored["id"], after=stored)

def get_file_handler(ctx, view, environ, file_id):
    return ok(ctx.tracker.get_file(int(file_id)))

def delete_file_handler(ctx, view, environ, file_id):
    before = ctx.tracker.get_file(int(file_id))
    ctx.tracker.delete_file(int(file_id))
    return ok(status="204 No Content", entity_id=int(file_id), before=before)

def list_audit_handler(ctx, view, environ):
    query = get_query(environ)
    limit = int(query.get("limit", 100))
    if query.get("entity_type") and query.get("entity_id"):
        entries = ctx.audit_service.list_by_entity(query["entity_type"], int(query["entity_id"]), limit)
    else:
        entries = ctx.audit_service.list_recent(limit)
    return ok({"entries": entries})

def purge_audit_handler(ctx, view, environ):
    days = get_query(environ).get("older_than_days")
    deleted = ctx.audit_service.purge_older_than(int(days) if days is not None else None)
    return ok({"deleted": deleted}, after={"deleted": deleted})

ID = r"([0-9]+)"
ROLE = r"([a-zA-Z0-9_-]+)"

ROUTES = [
    Route('POST', r'^/v1/auth/tokens$', auth_tokens_handler, public=True),
    Route('DELETE', r'^/v1/auth/tokens$', revoke_token_handler),

    Route('GET', r'^/v1/users$', list_users_handler, P.USERS_LIST_ALL),
    Route('POST', r'^/v1/users$', create_user_handler, P.USERS_CREATE, audit=('create', 'user')),
    Route('GET', rf'^/v1/users/{ID}$', get_user_handler, P.USERS_VIEW_PROFILE, resource_arg=0),
    Route('DELETE', rf'^/v1/users/{ID}$', delete_user_handler, P.USERS_DELETE, audit=('delete', 'user')),
    Route('PUT', rf'^/v1/users/{ID}/superuser$', set_superuser_handler, P.USERS_MANAGE_ROLES, audit=('update', 'user')),
    Route('GET', rf'^/v1/users/{ID}/roles$', list_user_roles_handler, P.ROLES_READ),
    Route('PUT', rf'^/v1/users/{ID}/roles$', sync_user_roles_handler, P.ROLES_ASSIGN, audit=('sync', 'role')),
    Route('GET', rf'^/v1/users/{ID}/roles/history$', user_role_history_handler, P.ROLES_READ),
    Route('PUT', rf'^/v1/users/{ID}/roles/{ROLE}$', assign_role_handler, P.ROLES_ASSIGN, audit=('assign', 'role')),
    Route('DELETE', rf'^/v1/users/{ID}/roles/{ROLE}$', remove_role_handler, P.ROLES_REMOVE, audit=('remove', 'role')),
    Route('DELETE', rf'^/v1/users/{ID}/roles/{ROLE}/history$', purge_role_assignment_handler, P.ROLES_DELETE,
          audit=('purge', 'role')),

    Route('GET', r'^/v1/roles$', list_roles_handler, P.ROLES_READ),
    Route('POST', r'^/v1/roles$', create_role_handler, P.ROLES_CREATE, audit=('create', 'role')),
    Route('DELETE', rf'^/v1/roles/{ROLE}$', delete_role_handler, P.ROLES_DELETE, audit=('delete', 'role')),

    Route('POST', r'^/v1/projects$', create_project_handler, P.PROJECTS_CREATE, audit=('create', 'project')),
    Route('GET', rf'^/v1/projects/{ID}$', get_project_handler, P.PROJECTS_READ, resource_arg=0),
    Route('PATCH', rf'^/v1/projects/{ID}$', update_project_handler, P.PROJECTS_UPDATE, resource_arg=0, audit=('update', 'project')),
    Route('DELETE', rf'^/v1/projects/{ID}$', delete_project_handler, P.PROJECTS_DELETE, resource_arg=0, audit=('delete', 'project')),
    Route('PUT', rf'^/v1/projects/{ID}/responsibles/{ID}$', assign_responsible_handler, P.PROJECTS_ASSIGN_RESPONSIBLES,
          resource_arg=0, audit=('assign', 'project_responsible')),
    Route('DELETE', rf'^/v1/projects/{ID}/responsibles/{ID}$', remove_responsible_handler, P.PROJECTS_ASSIGN_RESPONSIBLES,
          resource_arg=0, audit=('remove', 'project_responsible')),
    Route('POST', rf'^/v1/projects/{ID}/tasks$', create_task_handler, P.TASKS_CREATE, parent_arg=0, audit=('create', 'task')),

    Route('GET', rf'^/v1/tasks/{ID}$', get_task_handler, P.TASKS_READ, resource_arg=0),
    Route('PATCH', rf'^/v1/tasks/{ID}$', update_task_handler, P.TASKS_UPDATE, resource_arg=0, audit=('update', 'task')),
    Route('DELETE', rf'^/v1/tasks/{ID}$', delete_task_handler, P.TASKS_DELETE, resource_arg=0, audit=('delete', 'task')),
    Route('POST', rf'^/v1/tasks/{ID}/files$', upload_file_handler, P.FILES_UPLOAD, parent_arg=0, audit=('create', 'file')),

    Route('GET', rf'^/v1/files/{ID}$', get_file_handler, P.FILES_VIEW_METADATA, resource_arg=0),
    Route('DELETE', rf'^/v1/files/{ID}$', delete_file_handler, P.FILES_DELETE, resource_arg=0, audit=('delete', 'file')),

    Route('GET', r'^/v1/audit$', list_audit_handler, P.LOGS_READ),
    Route('DELETE', r'^/v1/audit$', purge_audit_handler, P.LOGS_DELETE, audit=('purge', 'audit')),
]

def match_route(method, path):
    for route in ROUTES:
        if method == route.method and (match := re.match(route.pattern, path)):
            return route, match.groups()
    return None, ()

# --------------------------------------------------------------------------
## WSGI 애플리케이션 (의존성 주입 및 라우팅)
# --------------------------------------------------------------------------

def create_app(session_factory=None, audit_sink=None, token_store=None, rate_limiter=None, catalog=None):
    """
    WSGI 애플리케이션을 생성합니다.

    카탈로그, 토큰 저장소, 요청 제한기, 감사 기록기는 앱 단위로 한 번 만들고,
    리포지토리와 서비스는 요청마다 새 DB 세션으로 만듭니다.
    """
    session_factory = session_factory or SessionLocal
    catalog = catalog or RoleCatalog()
    token_store = token_store or TokenStore()
    rate_limiter = rate_limiter or UserRateLimiter()
    audit_sink = audit_sink or AuditSink(session_factory, max_workers=get_settings().audit_workers)

    def build_context(db_session):
        # 1. 의존성 생성 (Repositories -> Services)
        user_repo = SqlalchemyUserRepository(db_session)
        role_repo = SqlalchemyRoleRepository(db_session)
        user_role_repo = SqlalchemyUserRoleRepository(db_session)
        project_repo = SqlalchemyProjectRepository(db_session)
        task_repo = SqlalchemyTaskRepository(db_session)
        file_repo = SqlalchemyFileRepository(db_session)

        role_store = RoleAssignmentStore(user_repo, role_repo, user_role_repo)
        resolvers = build_resolvers(project_repo, task_repo, file_repo, user_repo)
        return AuthzContext(
            catalog=catalog,
            role_store=role_store,
            engine=AccessDecisionEngine(catalog, role_store, resolvers),
            identity=IdentityService(user_repo, token_store),
            audit_sink=audit_sink,
            audit_service=AuditService(SqlalchemyAuditRepository(db_session)),
            rate_limiter=rate_limiter,
            tracker=TrackerService(project_repo, task_repo, file_repo, user_repo),
        )

    def application(environ, start_response):
        db_session = session_factory()
        hooks = []
        try:
            # 2. 라우팅 및 파이프라인 실행
            route, path_args = match_route(environ.get("REQUEST_METHOD", ""), environ.get("PATH_INFO", ""))
            if route:
                result, hooks = AuthzPipeline(build_context(db_session)).run(environ, route, path_args)
                status, body = result.status, result.payload
            else:
                status, body = '404 Not Found', {"success": False, "message": "Not Found"}
        except Exception as e:
            db_session.rollback()
            status, body = handle_exception(e)
        finally:
            db_session.close()

        payload = b"" if body is None else json.dumps(body, default=str).encode("utf-8")
        start_response(status, [("Content-Type", "application/json"), ("Content-Length", str(len(payload)))])
        return ClosingResponse([payload], hooks)

    application.audit_sink = audit_sink
    return application

# --------------------------------------------------------------------------
## 서버 실행
# --------------------------------------------------------------------------

if __name__ == "__main__":
    from authz.database.db_init import initialize_db

    configure_logging()
    initialize_db()
    app = create_app()
    port = get_settings().port
    try:
        with make_server("", port, app) as httpd:
            logger.info("Serving task tracker authorization core on port %d...", port)
            httpd.serve_forever()
    except Exception:
        logger.exception("Error starting server")
        sys.exit(1)
    finally:
        app.audit_sink.close()
