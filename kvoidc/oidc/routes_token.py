"""Token issuance endpoint."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from starlette.responses import JSONResponse

from kvoidc.api.deps import get_issuance_context, get_settings, require_caller_claims
from kvoidc.core.errors import error_response
from kvoidc.core.result import Err, with_deadline
from kvoidc.core.settings import Settings
from kvoidc.oidc.token_service import issue_token
from kvoidc.oidc.types import IssuanceContext, TokenRequest, TokenResponse

router = APIRouter()


@router.get("/token", response_model=None)
async def token_endpoint(
    claims: Annotated[dict[str, Any], Depends(require_caller_claims)],
    ctx: Annotated[IssuanceContext, Depends(get_issuance_context)],
    settings: Annotated[Settings, Depends(get_settings)],
    group_object_id: Annotated[str | None, Query()] = None,
) -> TokenResponse | JSONResponse:
    """GET /token -- mint a token for a group the caller belongs to."""
    request = TokenRequest(group_object_id=group_object_id, claims=claims)
    result = await with_deadline(
        issue_token(ctx, request),
        settings.request_timeout_seconds,
        "failed to create token",
    )
    if isinstance(result, Err):
        return error_response(
            result.error,
            endpoint="token",
            requested_group_object_id=group_object_id,
        )
    return result.value
