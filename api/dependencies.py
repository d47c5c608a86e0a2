"""FastAPI dependencies: service container access and bearer authentication."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from infrastructure.service_container import ServiceContainer

bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_container),
) -> dict:
    """Profile for the bearer token. Raises Unauthenticated (401) without one."""
    token = credentials.credentials if credentials else None
    return container.profile_service.authenticate(token)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_container),
) -> Optional[dict]:
    """Like get_current_user, but anonymous requests get None."""
    if credentials is None:
        return None
    return container.profile_service.authenticate(credentials.credentials)
