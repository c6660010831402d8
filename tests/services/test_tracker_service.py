# tests/services/test_tracker_service.py
import pytest
from unittest.mock import MagicMock

from authz.services.tracker_service import TrackerService
from authz.services.exceptions import TaskNotFoundError, UserNotFoundError
from authz.repositories.interfaces import (
    IProjectRepository, ITaskRepository, IFileRepository, IUserRepository
)
from authz.database import models

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def repos():
    return {
        "project": MagicMock(spec=IProjectRepository),
        "task": MagicMock(spec=ITaskRepository),
        "file": MagicMock(spec=IFileRepository),
        "user": MagicMock(spec=IUserRepository),
    }

@pytest.fixture
def tracker(repos) -> TrackerService:
    return TrackerService(repos["project"], repos["task"], repos["file"], repos["user"])

@pytest.fixture
def task() -> models.Task:
    return models.Task(id=7, project_id=1, title="write report", status="pending", assigned_user_id=2)

# ===================================================================
#  태스크 수정
# ===================================================================
class TestUpdateTask:
    def test_reassign_to_existing_user(self, tracker, repos, task):
        # === Arrange ===
        repos["task"].find_by_id.return_value = task
        repos["user"].find_by_id.return_value = models.User(id=3, username="bob")
        repos["task"].update.side_effect = lambda t, changes: models.Task(
            id=t.id, project_id=t.project_id, title=t.title, status=t.status, **changes
        )

        # === Act ===
        result = tracker.update_task(7, {"assigned_user_id": 3})

        # === Assert ===
        assert result["assigned_user_id"] == 3
        repos["user"].find_by_id.assert_called_once_with(3)

    def test_reassign_to_unknown_user_fails(self, tracker, repos, task):
        """존재하지 않는 사용자에게 배정하면 UserNotFoundError가 발생하고 저장되지 않아야 합니다."""
        # === Arrange ===
        repos["task"].find_by_id.return_value = task
        repos["user"].find_by_id.return_value = None

        # === Act & Assert ===
        with pytest.raises(UserNotFoundError):
            tracker.update_task(7, {"assigned_user_id": 98765})
        repos["task"].update.assert_not_called()

    def test_unassign_skips_user_lookup(self, tracker, repos, task):
        repos["task"].find_by_id.return_value = task
        repos["task"].update.return_value = task

        tracker.update_task(7, {"assigned_user_id": None})

        repos["user"].find_by_id.assert_not_called()
        repos["task"].update.assert_called_once_with(task, {"assigned_user_id": None})

    @pytest.mark.parametrize("changes", [
        {"title": None},
        {"title": ""},
        {"title": "   "},
        {"status": None},
    ])
    def test_required_fields_cannot_be_cleared(self, tracker, repos, task, changes):
        repos["task"].find_by_id.return_value = task

        with pytest.raises(ValueError):
            tracker.update_task(7, changes)
        repos["task"].update.assert_not_called()

    def test_unknown_field_is_rejected(self, tracker, repos, task):
        repos["task"].find_by_id.return_value = task

        with pytest.raises(ValueError, match="Unsupported fields: owner"):
            tracker.update_task(7, {"owner": 1})

    def test_missing_task(self, tracker, repos):
        repos["task"].find_by_id.return_value = None

        with pytest.raises(TaskNotFoundError):
            tracker.update_task(404, {"status": "done"})

# ===================================================================
#  프로젝트 수정
# ===================================================================
class TestUpdateProject:
    @pytest.mark.parametrize("name", [None, "", "  "])
    def test_name_cannot_be_cleared(self, tracker, repos, name):
        repos["project"].find_by_id.return_value = models.Project(id=1, name="apollo", created_by=1)

        with pytest.raises(ValueError):
            tracker.update_project(1, {"name": name})
        repos["project"].update.assert_not_called()

    def test_description_can_be_cleared(self, tracker, repos):
        project = models.Project(id=1, name="apollo", description="moon", created_by=1)
        repos["project"].find_by_id.return_value = project
        repos["project"].update.return_value = models.Project(id=1, name="apollo", description=None, created_by=1)

        result = tracker.update_project(1, {"description": None})

        assert result["description"] is None
        repos["project"].update.assert_called_once_with(project, {"description": None})
