"""
tests/test_jwt_startup — Token Secret & Bearer Parsing
=======================================================
The API refuses to start on a weak JWT_SECRET; bearer headers resolve
to a user id only when signed with the live secret.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from fastapi import HTTPException

from onlytalk.api import deps


class TestSecretValidation:
    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_secret(self, monkeypatch, value):
        if value is None:
            monkeypatch.delenv("JWT_SECRET", raising=False)
        else:
            monkeypatch.setenv("JWT_SECRET", value)
        with pytest.raises(RuntimeError, match="not set"):
            deps._load_jwt_secret()

    @pytest.mark.parametrize("weak", ["your-secret-key", "change-me", "onlytalk-dev-secret-change-me"])
    def test_weak_defaults(self, monkeypatch, weak):
        monkeypatch.setenv("JWT_SECRET", weak)
        with pytest.raises(RuntimeError, match="known weak default"):
            deps._load_jwt_secret()

    def test_short_secret(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "x" * 31)
        with pytest.raises(RuntimeError, match="too short"):
            deps._load_jwt_secret()

    def test_strong_secret(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "k" * 48)
        assert deps._load_jwt_secret() == "k" * 48


class TestBearerResolution:
    def test_issued_token_resolves(self):
        token = deps.create_access_token(7, "alice", "user", ttl_hours=1)
        claims = jwt.decode(token, deps.JWT_SECRET, algorithms=[deps.JWT_ALGORITHM])
        assert claims["sub"] == "7"
        assert claims["username"] == "alice"
        assert deps.get_current_user_id(f"Bearer {token}") == 7
        assert deps.get_optional_user_id(f"Bearer {token}") == 7

    def test_expired_token_rejected(self):
        token = jwt.encode(
            {"sub": "7", "exp": datetime.now(UTC) - timedelta(minutes=1)},
            deps.JWT_SECRET,
            algorithm=deps.JWT_ALGORITHM,
        )
        with pytest.raises(HTTPException) as info:
            deps.get_current_user_id(f"Bearer {token}")
        assert info.value.detail == "Invalid token"
        assert deps.get_optional_user_id(f"Bearer {token}") is None

    def test_foreign_signature_rejected(self):
        token = jwt.encode({"sub": "7"}, "z" * 40, algorithm="HS256")
        assert deps.get_optional_user_id(f"Bearer {token}") is None

    def test_missing_header(self):
        with pytest.raises(HTTPException) as info:
            deps.get_current_user_id(None)
        assert info.value.status_code == 401
        assert info.value.detail == "Missing token"
        assert deps.get_optional_user_id(None) is None
