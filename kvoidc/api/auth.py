"""Validation of inbound bearer tokens issued by the upstream authority."""

from typing import Any

import httpx
import jwt
import structlog
from fastapi.concurrency import run_in_threadpool
from jwt import PyJWKClient

from kvoidc.core.errors import ErrorKind, ServiceError

logger = structlog.get_logger(__name__)

DISCOVERY_PATH = "/.well-known/openid-configuration"
ACCEPTED_ALGORITHMS = ["RS256"]
KEYS_UNAVAILABLE = "failed to load the signing keys of the token authority"


class BearerAuthenticator:
    """Checks signature, issuer, audience and lifetime of caller tokens."""

    def __init__(
        self,
        issuer: str,
        audience: str,
        http: httpx.AsyncClient,
        jwks_uri: str | None = None,
    ) -> None:
        self._issuer = issuer
        self._audience = audience
        self._http = http
        self._jwks_uri = jwks_uri
        self._jwk_client: PyJWKClient | None = None

    async def _resolve_jwks_uri(self) -> str:
        if self._jwks_uri:
            return self._jwks_uri
        url = self._issuer.rstrip("/") + DISCOVERY_PATH
        response = await self._http.get(url)
        response.raise_for_status()
        document = response.json()
        jwks_uri = document.get("jwks_uri") if isinstance(document, dict) else None
        if not isinstance(jwks_uri, str) or not jwks_uri:
            raise ValueError(f"No jwks_uri in discovery document at {url}")
        logger.info("bearer_jwks_resolved", jwks_uri=jwks_uri)
        return jwks_uri

    async def _client(self) -> PyJWKClient:
        if self._jwk_client is None:
            try:
                jwks_uri = await self._resolve_jwks_uri()
            except (httpx.HTTPError, ValueError) as exc:
                raise ServiceError(ErrorKind.DEPENDENCY, KEYS_UNAVAILABLE) from exc
            self._jwk_client = PyJWKClient(jwks_uri)
        return self._jwk_client

    async def authenticate(self, token: str) -> dict[str, Any]:
        """Return the token's claims.

        Raises ``jwt.PyJWTError`` when the token itself is unacceptable and
        ``ServiceError`` when the authority's keys cannot be fetched.
        """
        client = await self._client()
        try:
            signing_key = await run_in_threadpool(client.get_signing_key_from_jwt, token)
        except jwt.PyJWKClientConnectionError as exc:
            raise ServiceError(ErrorKind.DEPENDENCY, KEYS_UNAVAILABLE) from exc
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=ACCEPTED_ALGORITHMS,
            issuer=self._issuer,
            audience=self._audience,
            options={"require": ["exp", "iss", "aud"]},
        )
