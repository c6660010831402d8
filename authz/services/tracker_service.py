from typing import Dict, Any, List, Optional

from authz.database import models
from authz.repositories.interfaces import (
    IProjectRepository, ITaskRepository, IFileRepository, IUserRepository
)
from authz.services.exceptions import (
    ProjectNotFoundError, TaskNotFoundError, StoredFileNotFoundError, UserNotFoundError
)

TASK_FIELDS = ("title", "status", "assigned_user_id")
PROJECT_FIELDS = ("name", "description")
# NOT NULL 컬럼: None이나 빈 문자열로 바꿀 수 없습니다.
REQUIRED_TASK_FIELDS = ("title", "status")
REQUIRED_PROJECT_FIELDS = ("name",)


class TrackerService:
    """프로젝트, 태스크, 파일 메타데이터를 관리합니다. 권한 판단은 호출 전에 끝나 있어야 합니다."""

    def __init__(self, project_repo: IProjectRepository, task_repo: ITaskRepository,
                 file_repo: IFileRepository, user_repo: IUserRepository):
        self.project_repo = project_repo
        self.task_repo = task_repo
        self.file_repo = file_repo
        self.user_repo = user_repo

    # --- Projects ---
    def create_project(self, name: str, creator_id: int, description: Optional[str] = None) -> Dict[str, Any]:
        """
        새로운 프로젝트를 생성합니다. 생성자는 프로젝트의 principal 책임자가 됩니다.

        Raises:
            ValueError: 이름이 비어 있을 때.
        """
        if not name:
            raise ValueError("Project name is required.")
        project = self.project_repo.create(models.Project(name=name, description=description, created_by=creator_id))
        self.project_repo.add_responsible(project.id, creator_id, "principal", creator_id)
        return self._project(project)

    def get_project(self, project_id: int) -> Dict[str, Any]:
        project = self._require_project(project_id)
        data = self._project(project)
        data["responsibles"] = self.project_repo.list_responsibles(project_id)
        return data

    def update_project(self, project_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        project = self._require_project(project_id)
        changes = self._pick(changes, PROJECT_FIELDS, REQUIRED_PROJECT_FIELDS)
        return self._project(self.project_repo.update(project, changes))

    def delete_project(self, project_id: int) -> bool:
        self.project_repo.delete(self._require_project(project_id))
        return True

    def assign_responsible(self, project_id: int, user_id: int, responsibility: str = "collaborator",
                           assigned_by: Optional[int] = None) -> Dict[str, Any]:
        """
        프로젝트 책임자를 지정합니다.

        Raises:
            ValueError: 알 수 없는 책임 태그일 때.
            ProjectNotFoundError, UserNotFoundError: 대상이 없을 때.
        """
        if responsibility not in models.RESPONSIBILITIES:
            raise ValueError(f"Invalid responsibility '{responsibility}'.")
        self._require_project(project_id)
        if not self.user_repo.find_by_id(user_id):
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        row = self.project_repo.add_responsible(project_id, user_id, responsibility, assigned_by)
        return {"project_id": row.project_id, "user_id": row.user_id, "responsibility": row.responsibility}

    def remove_responsible(self, project_id: int, user_id: int, responsibility: Optional[str] = None) -> int:
        self._require_project(project_id)
        return self.project_repo.remove_responsible(project_id, user_id, responsibility)

    def list_responsibles(self, project_id: int) -> List[Dict[str, Any]]:
        self._require_project(project_id)
        return self.project_repo.list_responsibles(project_id)

    # --- Tasks ---
    def create_task(self, project_id: int, title: str, assigned_user_id: Optional[int] = None) -> Dict[str, Any]:
        if not title:
            raise ValueError("Task title is required.")
        self._require_project(project_id)
        if assigned_user_id is not None and not self.user_repo.find_by_id(assigned_user_id):
            raise UserNotFoundError(f"User with id '{assigned_user_id}' not found.")
        task = self.task_repo.create(models.Task(project_id=project_id, title=title, assigned_user_id=assigned_user_id))
        return self._task(task)

    def get_task(self, task_id: int) -> Dict[str, Any]:
        return self._task(self._require_task(task_id))

    def update_task(self, task_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        태스크를 수정합니다. assigned_user_id를 None으로 바꾸면 배정이 해제됩니다.

        Raises:
            TaskNotFoundError: 태스크가 없을 때.
            UserNotFoundError: 배정할 사용자가 없을 때.
            ValueError: 알 수 없는 필드이거나 필수 필드를 비우려 할 때.
        """
        task = self._require_task(task_id)
        changes = self._pick(changes, TASK_FIELDS, REQUIRED_TASK_FIELDS)
        assignee = changes.get("assigned_user_id")
        if assignee is not None and not self.user_repo.find_by_id(assignee):
            raise UserNotFoundError(f"User with id '{assignee}' not found.")
        return self._task(self.task_repo.update(task, changes))

    def delete_task(self, task_id: int) -> bool:
        self.task_repo.delete(self._require_task(task_id))
        return True

    # --- Files ---
    def register_file(self, task_id: int, filename: str, uploaded_by: int) -> Dict[str, Any]:
        """업로드된 파일의 메타데이터를 태스크(와 그 프로젝트)에 연결하여 저장합니다."""
        if not filename:
            raise ValueError("filename is required.")
        task = self._require_task(task_id)
        stored = self.file_repo.create(models.StoredFile(
            filename=filename, uploaded_by=uploaded_by, task_id=task.id, project_id=task.project_id
        ))
        return self._file(stored)

    def get_file(self, file_id: int) -> Dict[str, Any]:
        return self._file(self._require_file(file_id))

    def delete_file(self, file_id: int) -> bool:
        self.file_repo.delete(self._require_file(file_id))
        return True

    # ------------------------------------------------------------------

    def _require_project(self, project_id: int) -> models.Project:
        project = self.project_repo.find_by_id(project_id)
        if not project:
            raise ProjectNotFoundError(f"Project with id '{project_id}' not found.")
        return project

    def _require_task(self, task_id: int) -> models.Task:
        task = self.task_repo.find_by_id(task_id)
        if not task:
            raise TaskNotFoundError(f"Task with id '{task_id}' not found.")
        return task

    def _require_file(self, file_id: int) -> models.StoredFile:
        stored = self.file_repo.find_by_id(file_id)
        if not stored:
            raise StoredFileNotFoundError(f"File with id '{file_id}' not found.")
        return stored

    @staticmethod
    def _pick(changes: Dict[str, Any], allowed, required=()) -> Dict[str, Any]:
        unknown = set(changes) - set(allowed)
        if unknown:
            raise ValueError(f"Unsupported fields: {', '.join(sorted(unknown))}")
        for field in required:
            if field in changes:
                value = changes[field]
                if value is None or (isinstance(value, str) and not value.strip()):
                    raise ValueError(f"'{field}' must not be empty.")
        return dict(changes)

    @staticmethod
    def _project(p: models.Project) -> Dict[str, Any]:
        return {"id": p.id, "name": p.name, "description": p.description, "created_by": p.created_by}

    @staticmethod
    def _task(t: models.Task) -> Dict[str, Any]:
        return {"id": t.id, "project_id": t.project_id, "title": t.title,
                "status": t.status, "assigned_user_id": t.assigned_user_id}

    @staticmethod
    def _file(f: models.StoredFile) -> Dict[str, Any]:
        return {"id": f.id, "filename": f.filename, "uploaded_by": f.uploaded_by,
                "project_id": f.project_id, "task_id": f.task_id}
