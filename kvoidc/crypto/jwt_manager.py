"""JWT creation with a remote signer."""

import json
from datetime import UTC, datetime
from typing import Any

from jwt.utils import base64url_encode

from kvoidc.crypto.remote_key import RemoteSignatureProvider
from kvoidc.crypto.types import TokenClaims


def _segment(obj: dict[str, Any]) -> bytes:
    return base64url_encode(json.dumps(obj, separators=(",", ":")).encode())


class JWTManager:
    """Creates tokens signed by a remote key."""

    def __init__(self, signer: RemoteSignatureProvider, issuer: str) -> None:
        self._signer = signer
        self._issuer = issuer

    def build_payload(self, claims: TokenClaims, now: datetime) -> dict[str, Any]:
        """Registered and private claims for one issuance at ``now``."""
        issued_at = int(now.timestamp())
        return {
            "sub": str(claims.sub),
            "iat": issued_at,
            "requestor_oid": str(claims.requestor_oid),
            "nbf": issued_at,
            "exp": issued_at + claims.ttl_seconds,
            "iss": self._issuer,
            "aud": claims.aud,
        }

    async def create_token(self, claims: TokenClaims, now: datetime | None = None) -> str:
        """Serialize and sign a compact JWS.

        The signing input is built here and handed to the remote signer as
        bytes; the private key never enters this process.
        """
        header = {
            "alg": self._signer.algorithm.value,
            "kid": self._signer.key.kid,
            "typ": "JWT",
        }
        payload = self.build_payload(claims, now or datetime.now(UTC))
        signing_input = b".".join([_segment(header), _segment(payload)])
        signature = await self._signer.sign(signing_input)
        return b".".join([signing_input, base64url_encode(signature)]).decode()
