"""FastAPI dependencies for API routers.

Provides common dependencies that can be injected into route handlers.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from typing_extensions import Annotated

from findash.auth import Identity, TokenManager
from findash.database import Database
from findash.errors import Unauthorized
from findash.settings import Settings

logger = logging.getLogger(__name__)

# auto_error=False so a missing header reaches require_user and gets our 401 envelope
bearer = HTTPBearer(auto_error=False)


@dataclass
class CommonDependencies:
    """Common dependencies used across API routes.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(deps: Annotated[CommonDependencies, Depends(get_common_deps)]):
            settings = deps.settings
            # ...
    """

    db: Database
    settings: Settings


async def get_common_deps() -> CommonDependencies:
    """Factory for common dependencies.

    Returns singleton instances of Database and Settings.
    """
    return CommonDependencies(
        db=Database(),
        settings=Settings(),
    )


async def require_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer)],
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> Identity:
    """Resolve the bearer token to the calling user.

    Raises:
        Unauthorized: If the token is missing, unknown, revoked or expired
    """
    if credentials is None:
        raise Unauthorized("missing bearer token")

    identity = await TokenManager(deps.db).verify(credentials.credentials)
    if identity is None:
        raise Unauthorized("invalid, revoked or expired token")
    return identity


CurrentUser = Annotated[Identity, Depends(require_user)]
