"""
Authentication Module

Verifies that a caller may act for a borrower before any ledger operation
runs. Tokens are HS256 JWTs whose ``sub`` claim is the caller identity.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone, timedelta
from typing import Optional
import logging

import jwt

from .errors import AuthenticationError, AuthorizationError


logger = logging.getLogger("lending_pool.auth")


class Authenticator(ABC):
    """Turns a bearer token into an identity"""

    @abstractmethod
    def authenticate(self, token: Optional[str]) -> str:
        """
        Return the identity carried by ``token``

        Raises:
            AuthenticationError: Missing, malformed or expired token
        """
        pass

    def require_auth(self, token: Optional[str], identity: str) -> str:
        """
        Check that the token belongs to ``identity``

        Raises:
            AuthenticationError: Token is invalid
            AuthorizationError: Token is valid but for someone else
        """
        caller = self.authenticate(token)
        if caller != identity:
            logger.warning(f"Caller {caller} attempted to act for {identity}")
            raise AuthorizationError(f"Caller {caller} is not authorized to act for {identity}")
        return caller


class JWTAuthenticator(Authenticator):
    """JWT bearer-token authenticator"""

    def __init__(self, secret: str, algorithm: str = "HS256", expiry_hours: int = 24):
        self.secret = secret
        self.algorithm = algorithm
        self.expiry_hours = expiry_hours

    def issue_token(self, identity: str, expires_in: Optional[timedelta] = None) -> str:
        """Mint a token for ``identity`` (local tooling and tests)"""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": identity,
            "iat": now,
            "exp": now + (expires_in if expires_in is not None else timedelta(hours=self.expiry_hours))
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def authenticate(self, token: Optional[str]) -> str:
        if not token:
            raise AuthenticationError("Not authenticated")
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")

        identity = payload.get("sub")
        if not identity:
            raise AuthenticationError("Invalid token")
        return identity


class TrustedAuthenticator(Authenticator):
    """
    Authenticator for when auth is disabled

    The token is taken as the caller identity. With no token at all the
    caller is trusted to be whoever it claims to be.
    """

    def authenticate(self, token: Optional[str]) -> str:
        if not token:
            raise AuthenticationError("Not authenticated")
        return token

    def require_auth(self, token: Optional[str], identity: str) -> str:
        if not token:
            return identity
        return super().require_auth(token, identity)


def create_authenticator(config) -> Authenticator:
    """Authenticator matching the configuration"""
    if not config.auth_enabled:
        return TrustedAuthenticator()
    return JWTAuthenticator(config.jwt_secret, config.jwt_algorithm, config.jwt_expiry_hours)
