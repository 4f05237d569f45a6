"""
Tests for bearer token verification.
"""

from datetime import datetime, timedelta, timezone

import pytest

from shared.security.auth import current_user_context, get_bearer_token, verify_jwt
from shared.utils.exceptions import AuthenticationError


class TestVerifyJwt:
    """Test token validation."""

    def test_valid_token(self, token_for):
        claims = verify_jwt(token_for(7, 3))
        assert claims["sub"] == "7"
        assert claims["tenant_id"] == 3

    def test_context_adds_user_id(self, token_for):
        ctx = current_user_context(f"Bearer {token_for(7, 3)}")
        assert ctx["user_id"] == 7
        assert ctx["tenant_id"] == 3

    def test_expired_token(self, token_for):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        with pytest.raises(AuthenticationError) as exc_info:
            verify_jwt(token_for(1, 1, exp=past))
        assert exc_info.value.status_code == 401

    @pytest.mark.parametrize(
        "overrides",
        [
            {"aud": "someone-else"},
            {"iss": "evil"},
            {"sub": "admin"},
        ],
    )
    def test_rejected_claims(self, token_for, overrides):
        with pytest.raises(AuthenticationError):
            verify_jwt(token_for(1, 1, **overrides))

    def test_tenant_id_must_be_an_integer(self, token_for):
        with pytest.raises(AuthenticationError):
            verify_jwt(token_for(1, "1"))

    def test_wrong_signature(self, token_for):
        token = token_for(1, 1)
        with pytest.raises(AuthenticationError):
            verify_jwt(token[:-4] + "AAAA")


class TestBearerHeader:
    """Test Authorization header parsing."""

    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer ", "Basic dXNlcg=="])
    def test_malformed_header(self, header):
        with pytest.raises(AuthenticationError):
            get_bearer_token(header)

    def test_extracts_token(self):
        assert get_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"
