# tests/services/test_access_decision_service.py
import logging

import pytest
from unittest.mock import MagicMock

from authz.services.access_decision_service import (
    AccessDecisionEngine, Outcome, NOT_FOUND, MISSING_BASE_PERMISSION, INSUFFICIENT_CONTEXT
)
from authz.services.context_resolvers import ContextResolver, TaskContext, ProjectContext
from authz.services.exceptions import *
from authz.services.permissions import Permission
from authz.services.principal import CurrentUser, RequestAuthzView
from authz.services.role_assignment_store import RoleAssignmentStore
from authz.services.role_catalog import RoleCatalog

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def catalog() -> RoleCatalog:
    return RoleCatalog()

@pytest.fixture
def mock_role_store() -> MagicMock:
    return MagicMock(spec=RoleAssignmentStore)

@pytest.fixture
def mock_task_resolver() -> MagicMock:
    """
    태스크 42는 사용자 7에게 배정되어 있고, 사용자 5가 프로젝트 책임자입니다.
    그 외 태스크는 존재하지 않습니다.
    """
    resolver = MagicMock(spec=ContextResolver)

    def resolve(user_id, resource_id=None, parent_id=None):
        if resource_id != 42:
            raise TaskNotFoundError(f"Task with id '{resource_id}' not found.")
        return TaskContext(
            task_id=42, project_id=1,
            is_assigned_to_caller=(user_id == 7),
            is_project_responsible=(user_id == 5),
        )

    resolver.resolve.side_effect = resolve
    return resolver

@pytest.fixture
def engine(catalog, mock_role_store, mock_task_resolver) -> AccessDecisionEngine:
    return AccessDecisionEngine(catalog, mock_role_store, {"tasks": mock_task_resolver})


def make_view(catalog, user_id, roles, is_superuser=False) -> RequestAuthzView:
    roles = tuple(roles)
    return RequestAuthzView(
        user=CurrentUser(id=user_id, username=f"user{user_id}", is_superuser=is_superuser),
        roles=roles,
        permissions=catalog.expand(roles),
    )

# ===================================================================
#  build_view
# ===================================================================
def test_build_view_expands_active_roles(engine, mock_role_store):
    # === Arrange ===
    mock_role_store.roles_of.return_value = ["task_owner"]

    # === Act ===
    view = engine.build_view(CurrentUser(id=7, username="alice"))

    # === Assert ===
    assert view.roles == ("task_owner",)
    assert Permission.TASKS_UPDATE in view.permissions
    assert Permission.PROJECTS_CREATE not in view.permissions
    assert view.is_admin is False
    mock_role_store.roles_of.assert_called_once_with(7)

# ===================================================================
#  관리자
# ===================================================================
class TestAdminBypass:
    def test_admin_role_is_allowed(self, engine, catalog):
        view = make_view(catalog, 1, ["admin"])

        decision = engine.authorize(view, "tasks:update", resource_id=42)

        assert decision.outcome == Outcome.ALLOW

    def test_superuser_without_roles_is_allowed(self, engine, catalog):
        view = make_view(catalog, 1, [], is_superuser=True)

        assert engine.authorize(view, "logs:delete").allowed is True

    def test_admin_never_sees_not_found(self, engine, catalog, mock_task_resolver):
        """관리자는 존재하지 않는 리소스에 대해서도 허용 판정을 받습니다."""
        view = make_view(catalog, 1, ["admin"])

        decision = engine.authorize(view, "tasks:update", resource_id=999)

        assert decision.outcome == Outcome.ALLOW
        mock_task_resolver.resolve.assert_called_once_with(1, 999, None)

# ===================================================================
#  역할 기반 판정
# ===================================================================
class TestBasePermission:
    def test_missing_base_permission_is_denied_without_resolving(self, engine, catalog, mock_task_resolver):
        view = make_view(catalog, 7, [])

        decision = engine.authorize(view, "tasks:update", resource_id=42)

        assert decision.outcome == Outcome.DENY
        assert decision.reason == MISSING_BASE_PERMISSION
        mock_task_resolver.resolve.assert_not_called()

    def test_missing_base_permission_hides_existence(self, engine, catalog):
        """기본 권한이 없으면 존재하지 않는 리소스도 404가 아닌 거부로 판정됩니다."""
        view = make_view(catalog, 7, [])

        decision = engine.authorize(view, "tasks:update", resource_id=999)

        assert decision.outcome == Outcome.DENY

    def test_permission_without_context_is_allowed_by_role(self, engine, catalog, mock_task_resolver):
        view = make_view(catalog, 7, ["task_owner"])

        decision = engine.authorize(view, Permission.TASKS_LIST_ASSIGNED)

        assert decision.allowed is True
        mock_task_resolver.resolve.assert_not_called()

    def test_unknown_permission_token(self, engine, catalog):
        view = make_view(catalog, 7, ["task_owner"])

        with pytest.raises(UnknownPermissionError):
            engine.authorize(view, "tasks:fly")

# ===================================================================
#  컨텍스트 기반 판정
# ===================================================================
class TestContextRefinement:
    def test_assigned_task_owner_is_allowed(self, engine, catalog):
        view = make_view(catalog, 7, ["task_owner"])

        decision = engine.authorize(view, "tasks:update", resource_id=42)

        assert decision.outcome == Outcome.ALLOW
        assert decision.context["is_assigned_to_caller"] is True

    def test_unassigned_task_owner_is_denied(self, engine, catalog):
        # === Arrange ===
        view = make_view(catalog, 8, ["task_owner"])

        # === Act ===
        decision = engine.authorize(view, "tasks:update", resource_id=42)

        # === Assert ===
        assert decision.outcome == Outcome.DENY
        assert decision.reason == INSUFFICIENT_CONTEXT
        assert decision.required_permission == "tasks:update"
        assert decision.user_roles == ("task_owner",)

    def test_project_responsible_is_allowed(self, engine, catalog):
        view = make_view(catalog, 5, ["project_owner"])

        assert engine.authorize(view, "tasks:update", resource_id=42).allowed is True

    def test_missing_resource_is_not_found(self, engine, catalog):
        view = make_view(catalog, 7, ["task_owner"])

        decision = engine.authorize(view, "tasks:update", resource_id=999)

        assert decision.outcome == Outcome.NOT_FOUND
        with pytest.raises(ResourceNotFound):
            decision.raise_for_outcome()

    def test_denied_decision_raises_with_details(self, engine, catalog):
        view = make_view(catalog, 8, ["task_owner"])

        with pytest.raises(AuthorizationDenied) as exc_info:
            engine.require(view, "tasks:update", resource_id=42)

        assert exc_info.value.required_permission == "tasks:update"
        assert exc_info.value.user_roles == ["task_owner"]

    def test_denial_is_logged(self, engine, catalog, caplog):
        view = make_view(catalog, 8, ["task_owner"])

        with caplog.at_level(logging.INFO, logger="authz.services.access_decision_service"):
            engine.authorize(view, "tasks:update", resource_id=42)

        assert "tasks:update" in caplog.text

# ===================================================================
#  decide (순수 함수)
# ===================================================================
class TestDecide:
    def test_not_found_marker(self, engine, catalog):
        view = make_view(catalog, 7, ["task_owner"])
        assert engine.decide(view, Permission.TASKS_READ, NOT_FOUND).outcome == Outcome.NOT_FOUND

    def test_missing_context_is_denied(self, engine, catalog):
        view = make_view(catalog, 7, ["task_owner"])
        assert engine.decide(view, Permission.TASKS_READ, None).outcome == Outcome.DENY

    def test_context_of_other_resource_type_is_denied(self, engine, catalog):
        view = make_view(catalog, 7, ["task_owner"])
        context = ProjectContext(project_id=1, is_responsible=True)

        assert engine.decide(view, Permission.TASKS_READ, context).outcome == Outcome.DENY

    def test_relations_are_or_combined(self, engine, catalog):
        view = make_view(catalog, 5, ["project_owner"])
        context = TaskContext(task_id=42, project_id=1, is_assigned_to_caller=False, is_project_responsible=True)

        assert engine.decide(view, Permission.TASKS_DELETE, context).allowed is True
