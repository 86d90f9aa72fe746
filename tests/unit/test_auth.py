"""Unit tests for authentication functions."""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from jose import jwt

from roomsync.auth import (
    authenticate_user,
    create_access_token,
    create_principal_token,
    decode_token,
    get_password_hash,
    principal_from_token,
    verify_password,
)
from roomsync.config import get_settings
from roomsync.errors import AuthenticationError
from roomsync.models import User
from roomsync.principal import Principal

settings = get_settings()


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_password_hash_and_verify(self):
        password = "MySecurePassword123!"
        hashed = get_password_hash(password)

        assert hashed != password
        assert verify_password(password, hashed) is True
        assert verify_password("WrongPassword", hashed) is False

    def test_same_password_different_hashes(self):
        """The same password hashes differently each time (salt)."""
        hash1 = get_password_hash("TestPassword123")
        hash2 = get_password_hash("TestPassword123")

        assert hash1 != hash2
        assert verify_password("TestPassword123", hash1) is True
        assert verify_password("TestPassword123", hash2) is True


class TestJWTTokens:
    """Test JWT token creation and decoding."""

    def test_create_access_token(self):
        token = create_access_token({"sub": "someone@example.com", "uid": 3})

        decoded = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        assert decoded["sub"] == "someone@example.com"
        assert decoded["uid"] == 3
        assert decoded["exp"] > datetime.now(timezone.utc).timestamp()

    def test_principal_token_round_trip(self):
        token = create_principal_token(Principal(user_id=5, label="Dana@Example.com"))

        principal = principal_from_token(token)
        assert principal == Principal(user_id=5, label="dana@example.com")

    def test_decode_token_invalid(self):
        with pytest.raises(AuthenticationError) as exc_info:
            decode_token("invalid.token.here")

        assert exc_info.value.status_code == 401
        assert "Invalid token" in exc_info.value.detail

    def test_decode_token_expired(self):
        token = create_access_token({"sub": "someone@example.com", "uid": 1}, timedelta(hours=-1))

        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_token_without_user_id_is_rejected(self):
        token = create_access_token({"sub": "someone@example.com"})

        with pytest.raises(AuthenticationError):
            principal_from_token(token)


class TestUserAuthentication:
    """Test user authentication logic."""

    def _user(self, password: str) -> User:
        return User(id=1, email="test@example.com", name="Test User", hashed_password=get_password_hash(password))

    def test_authenticate_user_success(self):
        mock_db = MagicMock()
        mock_db.query.return_value.filter.return_value.first.return_value = self._user("TestPass123")

        result = authenticate_user(mock_db, "test@example.com", "TestPass123")

        assert result is not None
        assert result.id == 1

    def test_authenticate_user_wrong_password(self):
        mock_db = MagicMock()
        mock_db.query.return_value.filter.return_value.first.return_value = self._user("CorrectPassword")

        assert authenticate_user(mock_db, "test@example.com", "WrongPassword") is None

    def test_authenticate_user_not_found(self):
        mock_db = MagicMock()
        mock_db.query.return_value.filter.return_value.first.return_value = None

        assert authenticate_user(mock_db, "nobody@example.com", "anypassword") is None
