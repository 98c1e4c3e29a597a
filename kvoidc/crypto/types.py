"""Type definitions for signing algorithms, JWKS, and JWT operations."""

from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel

from kvoidc.core.errors import UnsupportedAlgorithmError


class SigningAlgorithm(StrEnum):
    """Signing algorithms a remote key can back. RSA PKCS#1 v1.5 only."""

    RS256 = "RS256"

    @classmethod
    def parse(cls, name: "str | SigningAlgorithm") -> "SigningAlgorithm":
        """Resolve ``name`` or raise; never falls back to another algorithm."""
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedAlgorithmError(
                f"Unsupported signing algorithm: {name!r}"
            ) from None


class JWKEntry(BaseModel):
    """Single JWK entry in a JWKS response."""

    kty: str = "RSA"
    use: str = "sig"
    kid: str
    n: str
    e: str


class JWKSResponse(BaseModel):
    """JSON Web Key Set response."""

    keys: list[JWKEntry]


class TokenClaims(BaseModel):
    """Claims bundle for an issued identity token."""

    sub: UUID
    requestor_oid: UUID
    aud: str
    ttl_seconds: int = 600
