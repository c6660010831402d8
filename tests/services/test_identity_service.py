# tests/services/test_identity_service.py
import pytest
from unittest.mock import MagicMock, ANY
from datetime import datetime, timedelta

from authz.services.identity_service import IdentityService, TokenStore, hash_password
from authz.services.exceptions import *
from authz.repositories.interfaces import IUserRepository
from authz.database import models

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_user_repo() -> MagicMock:
    """IUserRepository에 대한 모의 객체를 생성합니다."""
    return MagicMock(spec=IUserRepository)

@pytest.fixture
def token_store() -> TokenStore:
    return TokenStore()

@pytest.fixture
def identity_service(mock_user_repo: MagicMock, token_store: TokenStore) -> IdentityService:
    """테스트에 사용될 IdentityService 인스턴스를 생성하고, 의존성을 주입합니다."""
    return IdentityService(mock_user_repo, token_store, token_ttl_minutes=30)

# ===================================================================
#  사용자 관리(User Management) 테스트
# ===================================================================
class TestUserManagement:
    def test_create_user_success(self, identity_service: IdentityService, mock_user_repo: MagicMock):
        """사용자 생성 성공 시나리오를 테스트합니다."""
        # === Arrange (테스트 준비) ===
        mock_user_repo.find_by_username.return_value = None
        mock_user_repo.create.return_value = models.User(id=3, username="alice", is_superuser=False)

        # === Act (실제 테스트 대상 실행) ===
        user = identity_service.create_user("alice", "secret")

        # === Assert (결과 검증) ===
        assert user == {"id": 3, "username": "alice", "is_superuser": False}
        mock_user_repo.create.assert_called_once_with(ANY)
        created = mock_user_repo.create.call_args[0][0]
        # 검증: 비밀번호는 해시되어 저장되어야 함
        assert created.password_hash == hash_password("secret")

    def test_create_user_fails_if_username_exists(self, identity_service: IdentityService, mock_user_repo: MagicMock):
        """이름이 중복될 경우 UserCreationError가 발생하는지 테스트합니다."""
        mock_user_repo.find_by_username.return_value = models.User(id=1, username="alice")

        with pytest.raises(UserCreationError):
            identity_service.create_user("alice", "secret")
        mock_user_repo.create.assert_not_called()

    def test_get_user_not_found(self, identity_service: IdentityService, mock_user_repo: MagicMock):
        mock_user_repo.find_by_id.return_value = None
        with pytest.raises(UserNotFoundError):
            identity_service.get_user(99)

    def test_set_superuser_without_change(self, identity_service: IdentityService, mock_user_repo: MagicMock):
        """값이 같으면 저장소를 호출하지 않고 changed=False를 반환합니다."""
        mock_user_repo.find_by_id.return_value = models.User(id=3, username="alice", is_superuser=True)

        result = identity_service.set_superuser(3, True)

        assert result["changed"] is False
        mock_user_repo.set_superuser.assert_not_called()

    def test_set_superuser_reports_before_and_after(self, identity_service: IdentityService, mock_user_repo: MagicMock):
        user = models.User(id=3, username="alice", is_superuser=False)
        mock_user_repo.find_by_id.return_value = user
        mock_user_repo.set_superuser.return_value = models.User(id=3, username="alice", is_superuser=True)

        result = identity_service.set_superuser(3, True)

        assert result["changed"] is True
        assert result["before"]["is_superuser"] is False
        assert result["after"]["is_superuser"] is True
        mock_user_repo.set_superuser.assert_called_once_with(user, True)

# ===================================================================
#  인증(Authentication) 테스트
# ===================================================================
class TestAuthentication:
    def test_authenticate_and_validate_token(self, identity_service: IdentityService, mock_user_repo: MagicMock):
        """발급된 토큰으로 요청자 정보를 얻을 수 있는지 테스트합니다."""
        # === Arrange ===
        user = models.User(id=3, username="alice", password_hash=hash_password("secret"), is_superuser=False)
        mock_user_repo.find_by_username.return_value = user
        mock_user_repo.find_by_id.return_value = user

        # === Act ===
        issued = identity_service.authenticate("alice", "secret")
        current = identity_service.validate_token(issued["token"])

        # === Assert ===
        assert current.id == 3
        assert current.username == "alice"
        assert current.is_superuser is False

    def test_authenticate_wrong_password(self, identity_service: IdentityService, mock_user_repo: MagicMock):
        mock_user_repo.find_by_username.return_value = models.User(
            id=3, username="alice", password_hash=hash_password("secret")
        )
        with pytest.raises(AuthenticationError):
            identity_service.authenticate("alice", "wrong")

    def test_validate_unknown_token(self, identity_service: IdentityService):
        with pytest.raises(TokenInvalidError):
            identity_service.validate_token("not-a-token")

    def test_validate_missing_token(self, identity_service: IdentityService):
        with pytest.raises(TokenInvalidError):
            identity_service.validate_token("")

    def test_expired_token_is_discarded(self, identity_service: IdentityService, token_store: TokenStore):
        """만료된 토큰은 거부되고 저장소에서도 제거되어야 합니다."""
        token_store.put("expired", {"user_id": 3, "expires_at": datetime.now() - timedelta(seconds=1)})

        with pytest.raises(TokenInvalidError):
            identity_service.validate_token("expired")
        assert token_store.get("expired") is None

    def test_token_of_deleted_user(self, identity_service: IdentityService, token_store: TokenStore,
                                   mock_user_repo: MagicMock):
        token_store.put("orphan", {"user_id": 3, "expires_at": datetime.now() + timedelta(minutes=5)})
        mock_user_repo.find_by_id.return_value = None

        with pytest.raises(TokenInvalidError):
            identity_service.validate_token("orphan")

    def test_revoke_token(self, identity_service: IdentityService, token_store: TokenStore):
        token_store.put("t", {"user_id": 3, "expires_at": datetime.now() + timedelta(minutes=5)})

        assert identity_service.revoke_token("t") is True
        assert identity_service.revoke_token("t") is False
