"""OIDC discovery and JWKS endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from starlette.responses import JSONResponse

from kvoidc.api.deps import get_key_directory, get_settings
from kvoidc.core.errors import error_response
from kvoidc.core.result import Err, with_deadline
from kvoidc.core.settings import Settings
from kvoidc.crypto.types import JWKSResponse
from kvoidc.keyvault.types import KeyDirectory
from kvoidc.oidc.discovery import DiscoveryDocument, build_discovery
from kvoidc.oidc.jwks import build_jwks

router = APIRouter()

JWKS_CACHE_CONTROL = "no-cache"


@router.get("/.well-known/openid-configuration")
async def openid_configuration(
    settings: Annotated[Settings, Depends(get_settings)],
) -> DiscoveryDocument:
    """OpenID Connect Discovery 1.0."""
    return build_discovery(settings.website_hostname)


@router.get("/jwks", response_model=None)
async def jwks(
    response: Response,
    settings: Annotated[Settings, Depends(get_settings)],
    directory: Annotated[KeyDirectory, Depends(get_key_directory)],
) -> JWKSResponse | JSONResponse:
    """JSON Web Key Set of every enabled signing key version."""
    result = await with_deadline(
        build_jwks(directory, settings.key_vault_openid_connect_jwks),
        settings.request_timeout_seconds,
        "Failed to get key versions",
    )
    if isinstance(result, Err):
        return error_response(result.error, endpoint="jwks")
    response.headers["Cache-Control"] = JWKS_CACHE_CONTROL
    return result.value
