"""Group-gated identity token issuance."""

from uuid import UUID

import structlog

from kvoidc.core.errors import ErrorKind, ServiceError
from kvoidc.core.result import Err, Ok, Result, attempt, attempt_async, fail
from kvoidc.crypto.jwt_manager import JWTManager
from kvoidc.crypto.remote_key import RemoteRSAKey
from kvoidc.crypto.types import SigningAlgorithm, TokenClaims
from kvoidc.oidc.types import IssuanceContext, TokenRequest, TokenResponse

logger = structlog.get_logger(__name__)

OID_CLAIM = "oid"


def parse_group_object_id(raw: str | None) -> Result[UUID]:
    """Validate the requested group id before any remote call."""
    if raw is None or not raw.strip():
        return fail(ErrorKind.VALIDATION, "group_object_id query parameter is required")
    return attempt(
        lambda: UUID(raw.strip()),
        ErrorKind.VALIDATION,
        "group_object_id is not a valid GUID",
    )


def parse_requestor_object_id(claims: dict[str, object]) -> Result[UUID]:
    """Read the caller's object id from already-validated claims."""
    raw = claims.get(OID_CLAIM)
    if not isinstance(raw, str) or not raw:
        return fail(ErrorKind.VALIDATION, "requestor object id is not a valid GUID")
    return attempt(
        lambda: UUID(raw),
        ErrorKind.VALIDATION,
        "requestor object id is not a valid GUID",
    )


async def is_member_of_group(
    ctx: IssuanceContext, requestor_oid: UUID, group_oid: UUID
) -> Result[bool]:
    """Ask the identity directory whether the requestor is in the group.

    A missing result list counts as "not a member".
    """
    found = await attempt_async(
        ctx.identity_directory.check_member_groups(requestor_oid, [group_oid]),
        ErrorKind.DEPENDENCY,
        "failed to check if requestor is a member of the requested group",
    )
    if isinstance(found, Err):
        return found
    if found.value is None:
        logger.warning("member_groups_empty", requestor_object_id=str(requestor_oid))
        return Ok(False)

    return Ok(any(_same_group(raw, group_oid) for raw in found.value))


async def create_token(
    ctx: IssuanceContext, group_oid: UUID, requestor_oid: UUID
) -> Result[str]:
    """Sign a token for ``group_oid`` with the current vault key."""
    fetched = await attempt_async(
        ctx.key_directory.get_key(ctx.key_name),
        ErrorKind.DEPENDENCY,
        "Failed to get signing key",
    )
    if isinstance(fetched, Err):
        return fetched
    if fetched.value.enabled is False:
        return fail(ErrorKind.DEPENDENCY, "Signing key is disabled")

    signer = attempt(
        lambda: RemoteRSAKey.from_key_material(fetched.value).create_signature_provider(
            ctx.key_directory, SigningAlgorithm.RS256
        ),
        ErrorKind.DEPENDENCY,
        "Failed to create signing credentials",
    )
    if isinstance(signer, Err):
        return signer

    claims = TokenClaims(
        sub=group_oid,
        requestor_oid=requestor_oid,
        aud=ctx.audience,
        ttl_seconds=ctx.ttl_seconds,
    )
    manager = JWTManager(signer.value, issuer=ctx.issuer)
    return await attempt_async(
        manager.create_token(claims),
        ErrorKind.DEPENDENCY,
        "Failed to write token",
    )


async def issue_token(ctx: IssuanceContext, request: TokenRequest) -> Result[TokenResponse]:
    """Validate inputs, check membership, then mint a token."""
    group = parse_group_object_id(request.group_object_id)
    if isinstance(group, Err):
        return group

    requestor = parse_requestor_object_id(request.claims)
    if isinstance(requestor, Err):
        return requestor

    member = await is_member_of_group(ctx, requestor.value, group.value)
    if isinstance(member, Err):
        return member
    if not member.value:
        return fail(ErrorKind.AUTHORIZATION, "requestor is not a member of the requested group")

    token = await create_token(ctx, group.value, requestor.value)
    if isinstance(token, Err):
        return Err(_chain(token, "failed to create token"))

    logger.info(
        "token_issued",
        requestor_object_id=str(requestor.value),
        requested_group_object_id=str(group.value),
    )
    return Ok(
        TokenResponse(
            access_token=token.value,
            requestor_object_id=requestor.value,
            requested_group_object_id=group.value,
        )
    )


def _same_group(raw: str, group_oid: UUID) -> bool:
    try:
        return UUID(raw) == group_oid
    except ValueError:
        logger.warning("member_group_id_invalid", value=raw)
        return False


def _chain(failed: Err, message: str) -> ServiceError:
    """Re-label a failure with a caller-facing message, keeping its cause."""
    return ServiceError.wrap(failed.error.kind, message, failed.error)
