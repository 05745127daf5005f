"""
Request dependencies: the lending service and the caller's bearer token
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..service import LendingService


security = HTTPBearer(auto_error=False)


def get_lending_service(request: Request) -> LendingService:
    return request.app.state.lending_service


def get_bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> Optional[str]:
    """Raw bearer token, or None; validation happens in the service"""
    if credentials is None:
        return None
    return credentials.credentials
