from .user import User
from .role import Role
from .user_role import UserRole
from .project import Project
from .project_responsible import ProjectResponsible, RESPONSIBILITIES
from .task import Task
from .file import StoredFile
from .audit_entry import AuditEntry
