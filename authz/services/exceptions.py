# authz/services/exceptions.py
from typing import List, Optional

# --- Not Found Exceptions ---
class ResourceNotFound(Exception):
    """요청한 리소스가 존재하지 않을 때 (404)"""
    pass

class UserNotFoundError(ResourceNotFound):
    """사용자를 찾을 수 없을 때"""
    pass

class RoleNotFoundError(ResourceNotFound):
    """역할을 찾을 수 없을 때"""
    pass

class ProjectNotFoundError(ResourceNotFound):
    """프로젝트를 찾을 수 없을 때"""
    pass

class TaskNotFoundError(ResourceNotFound):
    """태스크를 찾을 수 없을 때"""
    pass

class StoredFileNotFoundError(ResourceNotFound):
    """파일 메타데이터를 찾을 수 없을 때"""
    pass

# --- Creation/Validation Exceptions ---
class UserCreationError(Exception):
    """사용자 생성 실패 시"""
    pass

class RoleAlreadyExistsError(Exception):
    """같은 이름의 역할이 이미 존재할 때"""
    pass

class RoleInUseError(Exception):
    """활성 할당이 남아 있는 역할을 삭제하려고 할 때"""
    pass

class UnknownPermissionError(ValueError):
    """권한 토큰이 카탈로그의 닫힌 목록에 없을 때"""
    pass

# --- Auth Exceptions ---
class TokenInvalidError(Exception):
    """토큰이 유효하지 않거나 없을 때"""
    pass

class AuthenticationError(Exception):
    """사용자 자격 증명 실패 시"""
    pass

class RateLimitExceeded(Exception):
    """사용자별 요청 한도를 넘었을 때"""
    pass

class AuthorizationDenied(Exception):
    """
    인증된 사용자가 요청한 작업을 수행할 권한이 없을 때 (403).
    디버깅을 위해 필요한 권한과 사용자의 실제 역할을 함께 전달합니다.
    """
    def __init__(self, reason: str, user_roles: Optional[List[str]] = None, required_permission: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.user_roles = list(user_roles or [])
        self.required_permission = required_permission
