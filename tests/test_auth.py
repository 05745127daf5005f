"""
Tests for caller authentication
"""

import pytest
from datetime import timedelta

import jwt

from lending_pool.auth import JWTAuthenticator, TrustedAuthenticator, create_authenticator
from lending_pool.config import LendingPoolConfig
from lending_pool.errors import AuthenticationError, AuthorizationError


SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def authenticator():
    return JWTAuthenticator(SECRET)


class TestJWTAuthenticator:

    def test_issue_and_authenticate(self, authenticator):
        token = authenticator.issue_token("GALICE")
        assert authenticator.authenticate(token) == "GALICE"

    def test_require_auth_matching_identity(self, authenticator):
        token = authenticator.issue_token("GALICE")
        assert authenticator.require_auth(token, "GALICE") == "GALICE"

    def test_require_auth_other_identity(self, authenticator):
        """A valid token cannot act for someone else"""
        token = authenticator.issue_token("GMALLORY")
        with pytest.raises(AuthorizationError):
            authenticator.require_auth(token, "GALICE")

    def test_missing_token(self, authenticator):
        with pytest.raises(AuthenticationError):
            authenticator.authenticate(None)

    def test_expired_token(self, authenticator):
        token = authenticator.issue_token("GALICE", expires_in=timedelta(seconds=-1))
        with pytest.raises(AuthenticationError, match="expired"):
            authenticator.authenticate(token)

    def test_wrong_secret(self, authenticator):
        token = JWTAuthenticator("another-secret-key-that-is-long-enough-too").issue_token("GALICE")
        with pytest.raises(AuthenticationError, match="Invalid"):
            authenticator.authenticate(token)

    def test_garbage_token(self, authenticator):
        with pytest.raises(AuthenticationError):
            authenticator.authenticate("not-a-jwt")

    def test_token_without_subject(self, authenticator):
        token = jwt.encode({"role": "borrower"}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError):
            authenticator.authenticate(token)


class TestTrustedAuthenticator:

    def test_no_token_is_trusted(self):
        assert TrustedAuthenticator().require_auth(None, "GALICE") == "GALICE"

    def test_token_is_identity(self):
        authenticator = TrustedAuthenticator()
        assert authenticator.require_auth("GALICE", "GALICE") == "GALICE"
        with pytest.raises(AuthorizationError):
            authenticator.require_auth("GBOB", "GALICE")


class TestCreateAuthenticator:

    def test_auth_enabled(self):
        config = LendingPoolConfig(auth_enabled=True, jwt_secret=SECRET)
        assert isinstance(create_authenticator(config), JWTAuthenticator)

    def test_auth_disabled(self):
        config = LendingPoolConfig(auth_enabled=False)
        assert isinstance(create_authenticator(config), TrustedAuthenticator)
