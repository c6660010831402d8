from .user import IUserRepository
from .role import IRoleRepository
from .user_role import IUserRoleRepository
from .project import IProjectRepository
from .task import ITaskRepository
from .file import IFileRepository
from .audit import IAuditRepository
