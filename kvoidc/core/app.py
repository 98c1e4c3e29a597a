"""FastAPI application factory for the Key Vault backed OIDC issuer."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import structlog
from azure.identity.aio import DefaultAzureCredential
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from kvoidc.api.auth import BearerAuthenticator
from kvoidc.core.errors import ServiceError, error_response
from kvoidc.core.logging import configure_logging
from kvoidc.core.settings import Settings
from kvoidc.graph.client import GraphDirectory
from kvoidc.keyvault.client import KeyVaultDirectory
from kvoidc.oidc.routes_discovery import router as discovery_router
from kvoidc.oidc.routes_token import router as token_router

logger = structlog.get_logger(__name__)


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return error_response(exc, path=request.url.path)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Settings are resolved once here; missing required values raise
    ``pydantic.ValidationError`` and the process does not start.
    """
    if settings is None:
        settings = Settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        credential = DefaultAzureCredential(
            managed_identity_client_id=settings.key_vault_client_id
        )
        async with credential, httpx.AsyncClient(
            timeout=settings.request_timeout_seconds
        ) as http:
            key_directory = KeyVaultDirectory.from_url(settings.key_vault_url, credential)
            app.state.key_directory = key_directory
            app.state.identity_directory = GraphDirectory(
                http, credential, settings.graph_base_url
            )
            app.state.authenticator = BearerAuthenticator(
                issuer=settings.jwt_issuer,
                audience=settings.jwt_audience,
                http=http,
                jwks_uri=settings.jwt_jwks_uri,
            )
            logger.info(
                "issuer_started",
                hostname=settings.website_hostname,
                key_vault_url=settings.key_vault_url,
                signing_key_name=settings.key_vault_openid_connect_jwks,
            )
            try:
                yield
            finally:
                await key_directory.aclose()

    app = FastAPI(
        title="Key Vault OIDC Issuer",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_exception_handler(ServiceError, _service_error_handler)

    app.include_router(discovery_router)
    app.include_router(token_router)

    return app
