"""
authz/services/context_resolvers.py

리소스 종류별로 "요청자와 이 인스턴스의 관계"를 계산하는 전략들입니다.

각 리졸버는 두 가지 경로를 가집니다.
  - 생성 경로 (resource_id 없음): 아직 인스턴스가 없으므로 상위 리소스
    (태스크는 프로젝트, 파일은 태스크)와의 관계만 확인합니다.
  - 기존 인스턴스 경로: 인스턴스를 조회하고, 없으면 ResourceNotFound를 발생시킵니다.

컨텍스트는 요청마다 새로 계산되며 캐시하거나 저장하지 않습니다.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from authz.repositories.interfaces import (
    IProjectRepository, ITaskRepository, IFileRepository, IUserRepository
)
from authz.services.exceptions import (
    ProjectNotFoundError, TaskNotFoundError, StoredFileNotFoundError, UserNotFoundError
)


class ResourceContext(ABC):
    resource_type = ""

    @abstractmethod
    def permits(self) -> bool:
        """적용 가능한 관계 중 하나라도 성립하면 True. (OR 결합)"""
        pass

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["resource_type"] = self.resource_type
        return data


@dataclass(frozen=True)
class ProjectContext(ResourceContext):
    project_id: Optional[int]
    is_responsible: bool = False
    is_creation: bool = False

    resource_type = "projects"

    def permits(self) -> bool:
        return self.is_creation or self.is_responsible


@dataclass(frozen=True)
class TaskContext(ResourceContext):
    task_id: Optional[int]
    project_id: int
    is_assigned_to_caller: bool = False
    is_project_responsible: bool = False
    is_creation: bool = False

    resource_type = "tasks"

    def permits(self) -> bool:
        return self.is_assigned_to_caller or self.is_project_responsible


@dataclass(frozen=True)
class FileContext(ResourceContext):
    file_id: Optional[int]
    project_id: Optional[int]
    task_id: Optional[int]
    is_owner: bool = False
    is_task_assignee: bool = False
    is_project_responsible: bool = False
    is_creation: bool = False

    resource_type = "files"

    def permits(self) -> bool:
        # 태스크 배정은 업로드에만 적용됩니다. 기존 파일은 업로더와 프로젝트 책임자만 접근합니다.
        if self.is_owner or self.is_project_responsible:
            return True
        return self.is_creation and self.is_task_assignee


@dataclass(frozen=True)
class UserContext(ResourceContext):
    user_id: int
    is_self: bool = False

    resource_type = "users"

    def permits(self) -> bool:
        return self.is_self


class ContextResolver(ABC):
    @abstractmethod
    def resolve(self, user_id: int, resource_id: Optional[int] = None, parent_id: Optional[int] = None) -> ResourceContext:
        """
        요청자(user_id)와 리소스 사이의 관계를 계산합니다.

        Args:
            user_id: 요청한 사용자의 ID.
            resource_id: 대상 인스턴스 ID. 생성 요청이면 None.
            parent_id: 생성 요청일 때 상위 리소스의 ID.

        Raises:
            ResourceNotFound: 대상 인스턴스(또는 상위 리소스)가 없을 때.
        """
        pass


class ProjectContextResolver(ContextResolver):
    def __init__(self, project_repo: IProjectRepository):
        self.project_repo = project_repo

    def resolve(self, user_id, resource_id=None, parent_id=None) -> ProjectContext:
        if resource_id is None:
            # 생성 요청은 projects:create 기본 권한만으로 판단합니다.
            return ProjectContext(project_id=None, is_creation=True)

        if not self.project_repo.find_by_id(resource_id):
            raise ProjectNotFoundError(f"Project with id '{resource_id}' not found.")
        return ProjectContext(
            project_id=resource_id,
            is_responsible=self.project_repo.is_responsible(resource_id, user_id),
        )


class TaskContextResolver(ContextResolver):
    def __init__(self, task_repo: ITaskRepository, project_repo: IProjectRepository):
        self.task_repo = task_repo
        self.project_repo = project_repo

    def resolve(self, user_id, resource_id=None, parent_id=None) -> TaskContext:
        if resource_id is None:
            return self._resolve_creation(user_id, parent_id)

        task = self.task_repo.find_by_id(resource_id)
        if not task:
            raise TaskNotFoundError(f"Task with id '{resource_id}' not found.")

        is_assigned = task.assigned_user_id is not None and task.assigned_user_id == user_id
        return TaskContext(
            task_id=task.id,
            project_id=task.project_id,
            is_assigned_to_caller=is_assigned,
            is_project_responsible=self.project_repo.is_responsible(task.project_id, user_id),
        )

    def _resolve_creation(self, user_id: int, project_id: Optional[int]) -> TaskContext:
        if project_id is None:
            raise ValueError("Project id is required to create a task.")
        if not self.project_repo.find_by_id(project_id):
            raise ProjectNotFoundError(f"Project with id '{project_id}' not found.")
        return TaskContext(
            task_id=None,
            project_id=project_id,
            is_project_responsible=self.project_repo.is_responsible(project_id, user_id),
            is_creation=True,
        )


class FileContextResolver(ContextResolver):
    def __init__(self, file_repo: IFileRepository, task_repo: ITaskRepository, project_repo: IProjectRepository):
        self.file_repo = file_repo
        self.task_repo = task_repo
        self.project_repo = project_repo

    def resolve(self, user_id, resource_id=None, parent_id=None) -> FileContext:
        if resource_id is None:
            return self._resolve_upload(user_id, parent_id)

        stored = self.file_repo.find_by_id(resource_id)
        if not stored:
            raise StoredFileNotFoundError(f"File with id '{resource_id}' not found.")

        is_owner = stored.uploaded_by is not None and stored.uploaded_by == user_id
        task = self.task_repo.find_by_id(stored.task_id) if stored.task_id is not None else None
        project_id = stored.project_id
        if project_id is None and task is not None:
            project_id = task.project_id

        return FileContext(
            file_id=stored.id,
            project_id=project_id,
            task_id=stored.task_id,
            is_owner=is_owner,
            is_task_assignee=task is not None and task.assigned_user_id == user_id,
            is_project_responsible=project_id is not None and self.project_repo.is_responsible(project_id, user_id),
        )

    def _resolve_upload(self, user_id: int, task_id: Optional[int]) -> FileContext:
        # 업로드는 상위 태스크에 대한 접근 권한(배정 또는 프로젝트 책임)을 따릅니다.
        if task_id is None:
            raise ValueError("Task id is required to upload a file.")
        task = self.task_repo.find_by_id(task_id)
        if not task:
            raise TaskNotFoundError(f"Task with id '{task_id}' not found.")

        is_assignee = task.assigned_user_id is not None and task.assigned_user_id == user_id
        return FileContext(
            file_id=None,
            project_id=task.project_id,
            task_id=task.id,
            is_task_assignee=is_assignee,
            is_project_responsible=self.project_repo.is_responsible(task.project_id, user_id),
            is_creation=True,
        )


class UserContextResolver(ContextResolver):
    def __init__(self, user_repo: IUserRepository):
        self.user_repo = user_repo

    def resolve(self, user_id, resource_id=None, parent_id=None) -> UserContext:
        target_id = user_id if resource_id is None else resource_id
        if not self.user_repo.find_by_id(target_id):
            raise UserNotFoundError(f"User with id '{target_id}' not found.")
        return UserContext(user_id=target_id, is_self=(target_id == user_id))


def build_resolvers(project_repo: IProjectRepository, task_repo: ITaskRepository,
                    file_repo: IFileRepository, user_repo: IUserRepository) -> Dict[str, ContextResolver]:
    """리소스 이름(권한 토큰의 앞부분) -> 리졸버 매핑을 생성합니다."""
    return {
        "projects": ProjectContextResolver(project_repo),
        "tasks": TaskContextResolver(task_repo, project_repo),
        "files": FileContextResolver(file_repo, task_repo, project_repo),
        "users": UserContextResolver(user_repo),
    }
