"""Shared dependencies for API endpoints.

Authentication itself lives in the recruiting platform: this service only
requires the caller's Authorization header and forwards it to the platform on
every call it makes on the caller's behalf.

WHY DEPENDENCY INJECTION:
- Consistent credential handling across all endpoints
- Tests swap the platform client factory for the in-memory mock
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request

from app.adapters.platform import PlatformClient, get_platform_client
from app.core.errors import UnauthorizedError
from app.services.wizard_sessions import WizardSessionStore

_MAX_AUTHORIZATION_LENGTH = 8192
"""Safety bound on the forwarded header."""


def get_authorization(request: Request) -> str:
    """Return the caller's Authorization header.

    Raises:
        UnauthorizedError: If the header is missing, blank or oversized.
    """
    authorization = request.headers.get("Authorization", "").strip()
    if not authorization or len(authorization) > _MAX_AUTHORIZATION_LENGTH:
        raise UnauthorizedError()
    return authorization


def get_session_store(request: Request) -> WizardSessionStore:
    """Process-wide wizard session registry (created in create_app)."""
    store: WizardSessionStore = request.app.state.wizard_sessions
    return store


def get_platform_client_factory() -> Callable[[str | None], PlatformClient]:
    """Factory building a platform client for one caller.

    Overridden in tests via ``app.dependency_overrides``.
    """
    return get_platform_client


Authorization = Annotated[str, Depends(get_authorization)]
SessionStore = Annotated[WizardSessionStore, Depends(get_session_store)]
PlatformClientFactory = Annotated[
    Callable[[str | None], PlatformClient], Depends(get_platform_client_factory)
]
