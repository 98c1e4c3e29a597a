"""FastAPI dependency injection for settings, clients and caller identity."""

from typing import Annotated, Any

import jwt
import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from kvoidc.api.auth import BearerAuthenticator
from kvoidc.core.settings import Settings
from kvoidc.graph.client import IdentityDirectory
from kvoidc.keyvault.types import KeyDirectory
from kvoidc.oidc.types import IssuanceContext

logger = structlog.get_logger(__name__)

_security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_key_directory(request: Request) -> KeyDirectory:
    return request.app.state.key_directory


def get_identity_directory(request: Request) -> IdentityDirectory:
    return request.app.state.identity_directory


def get_authenticator(request: Request) -> BearerAuthenticator:
    return request.app.state.authenticator


def get_issuance_context(
    settings: Annotated[Settings, Depends(get_settings)],
    key_directory: Annotated[KeyDirectory, Depends(get_key_directory)],
    identity_directory: Annotated[IdentityDirectory, Depends(get_identity_directory)],
) -> IssuanceContext:
    """Bundle collaborators for one token request."""
    return IssuanceContext(
        key_directory=key_directory,
        identity_directory=identity_directory,
        key_name=settings.key_vault_openid_connect_jwks,
        issuer=settings.issuer_url,
    )


async def require_caller_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_security)],
    authenticator: Annotated[BearerAuthenticator, Depends(get_authenticator)],
) -> dict[str, Any]:
    """Verify the caller's Bearer token and return its claims.

    Upstream key outages surface as ``ServiceError`` and become a 500.
    """
    challenge = {"WWW-Authenticate": "Bearer"}
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, headers=challenge)
    try:
        return await authenticator.authenticate(credentials.credentials)
    except jwt.PyJWTError as exc:
        logger.warning("bearer_rejected", reason=str(exc))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, headers=challenge
        ) from exc
