"""Type definitions for token issuance."""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from kvoidc.graph.client import IdentityDirectory
from kvoidc.keyvault.types import KeyDirectory

TOKEN_EXCHANGE_AUDIENCE = "api://AzureADTokenExchange"
TOKEN_TTL_SECONDS = 600


class TokenResponse(BaseModel):
    """Body returned by GET /token."""

    access_token: str
    requestor_object_id: UUID
    requested_group_object_id: UUID


class TokenRequest(BaseModel):
    """Raw inputs of one issuance, before validation."""

    group_object_id: str | None = None
    claims: dict[str, Any]


@dataclass(frozen=True)
class IssuanceContext:
    """Collaborators and configuration for token issuance."""

    key_directory: KeyDirectory
    identity_directory: IdentityDirectory
    key_name: str
    issuer: str
    audience: str = TOKEN_EXCHANGE_AUDIENCE
    ttl_seconds: int = TOKEN_TTL_SECONDS
