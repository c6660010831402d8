from .sqlalchemy_user_repository import SqlalchemyUserRepository
from .sqlalchemy_role_repository import SqlalchemyRoleRepository
from .sqlalchemy_user_role_repository import SqlalchemyUserRoleRepository
from .sqlalchemy_project_repository import SqlalchemyProjectRepository
from .sqlalchemy_task_repository import SqlalchemyTaskRepository
from .sqlalchemy_file_repository import SqlalchemyFileRepository
from .sqlalchemy_audit_repository import SqlalchemyAuditRepository
