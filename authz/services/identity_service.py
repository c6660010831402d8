import hashlib
import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional

from authz.config import get_settings
from authz.database import models
from authz.repositories.interfaces import IUserRepository
from authz.services.exceptions import (
    UserCreationError, UserNotFoundError, AuthenticationError, TokenInvalidError
)
from authz.services.principal import CurrentUser

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode('utf-8')).hexdigest()


class TokenStore:
    """발급된 액세스 토큰을 보관하는 프로세스 로컬 저장소입니다."""

    def __init__(self):
        self._tokens: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def put(self, token: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._tokens[token] = data

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._tokens.get(token)

    def discard(self, token: str) -> bool:
        with self._lock:
            return self._tokens.pop(token, None) is not None


class IdentityService:
    """사용자 관리와 토큰 기반 인증을 제공합니다."""

    def __init__(self, user_repo: IUserRepository, token_store: TokenStore, token_ttl_minutes: int = None):
        """
        IdentityService를 초기화합니다.

        Args:
            user_repo: 사용자 데이터에 접근하기 위한 리포지토리.
            token_store: 발급한 토큰을 보관할 저장소. (앱 단위로 공유)
            token_ttl_minutes: 토큰 유효 시간(분). 생략하면 설정값을 사용합니다.
        """
        self.user_repo = user_repo
        self.token_store = token_store
        self.token_ttl = timedelta(
            minutes=get_settings().token_ttl_minutes if token_ttl_minutes is None else token_ttl_minutes
        )

    def create_user(self, username: str, password: str, is_superuser: bool = False) -> Dict[str, Any]:
        """
        새로운 사용자를 생성합니다. 비밀번호는 해시하여 저장합니다.

        Raises:
            ValueError: 사용자 이름이나 비밀번호가 비어 있을 때.
            UserCreationError: 동일한 이름의 사용자가 이미 존재할 때.
        """
        if not username or not password:
            raise ValueError("username and password are required.")
        if self.user_repo.find_by_username(username):
            raise UserCreationError(f"User with username '{username}' already exists.")

        new_user = models.User(username=username, password_hash=hash_password(password), is_superuser=bool(is_superuser))
        return self._serialize(self.user_repo.create(new_user))

    def list_users(self) -> List[Dict[str, Any]]:
        """모든 사용자의 목록을 조회합니다. (비밀번호 제외)"""
        return [self._serialize(u) for u in self.user_repo.list_all()]

    def get_user(self, user_id: int) -> Dict[str, Any]:
        """
        ID로 특정 사용자를 조회합니다. (비밀번호 제외)

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        return self._serialize(self._require_user(user_id))

    def delete_user(self, user_id: int) -> bool:
        """
        사용자를 삭제합니다. 사용자의 역할 할당도 함께 삭제됩니다.

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        self.user_repo.delete(self._require_user(user_id))
        return True

    def set_superuser(self, user_id: int, is_superuser: bool) -> Dict[str, Any]:
        """
        사용자의 슈퍼유저 플래그를 변경합니다.

        Returns:
            {'before': {...}, 'after': {...}, 'changed': bool}

        Raises:
            UserNotFoundError: 해당 ID의 사용자를 찾을 수 없을 때.
        """
        user = self._require_user(user_id)
        before = {"id": user.id, "is_superuser": bool(user.is_superuser)}
        if before["is_superuser"] == bool(is_superuser):
            return {"before": before, "after": before, "changed": False}

        user = self.user_repo.set_superuser(user, bool(is_superuser))
        after = {"id": user.id, "is_superuser": bool(user.is_superuser)}
        logger.warning("Superuser flag of user %s changed: %s -> %s", user_id, before["is_superuser"], after["is_superuser"])
        return {"before": before, "after": after, "changed": True}

    def authenticate(self, username: str, password: str) -> Dict[str, str]:
        """
        자격증명을 검증하고, 성공 시 인증 토큰을 발급합니다.

        Raises:
            AuthenticationError: 사용자 이름 또는 비밀번호가 올바르지 않을 때.
        """
        user = self.user_repo.find_by_username(username or "")
        if not user or user.password_hash != hash_password(password or ""):
            raise AuthenticationError("Invalid username or password.")

        token = str(uuid.uuid4())
        expires_at = datetime.now() + self.token_ttl
        self.token_store.put(token, {'user_id': user.id, 'expires_at': expires_at})
        return {"token": token, "expires_at": expires_at.isoformat()}

    def validate_token(self, token: str) -> CurrentUser:
        """
        인증 토큰을 검증하고, 유효하면 요청자 정보를 반환합니다.

        Raises:
            TokenInvalidError: 토큰이 없거나, 만료되었거나, 사용자가 삭제되었을 때.
        """
        if not token:
            raise TokenInvalidError("Missing access token.")

        token_data = self.token_store.get(token)
        if not token_data:
            raise TokenInvalidError("Token not found or invalid.")

        if datetime.now() > token_data['expires_at']:
            self.token_store.discard(token)
            raise TokenInvalidError("Token has expired.")

        user = self.user_repo.find_by_id(token_data['user_id'])
        if not user:
            self.token_store.discard(token)
            raise TokenInvalidError("Token user no longer exists.")
        return CurrentUser(id=user.id, username=user.username, is_superuser=bool(user.is_superuser))

    def revoke_token(self, token: str) -> bool:
        return self.token_store.discard(token)

    def _require_user(self, user_id: int) -> models.User:
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        return user

    @staticmethod
    def _serialize(user: models.User) -> Dict[str, Any]:
        return {"id": user.id, "username": user.username, "is_superuser": bool(user.is_superuser)}
