"""Application settings loaded from environment variables."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

GRAPH_BASE_URL_DEFAULT = "https://graph.microsoft.com/v1.0"
REQUEST_TIMEOUT_DEFAULT = 30.0


class Settings(BaseSettings):
    """Issuer settings. Required values have no default and fail at startup."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    jwt_issuer: str
    jwt_audience: str
    key_vault_url: str
    key_vault_openid_connect_jwks: str
    key_vault_client_id: str | None = None
    website_hostname: str

    jwt_jwks_uri: str | None = None
    graph_base_url: str = GRAPH_BASE_URL_DEFAULT
    request_timeout_seconds: float = REQUEST_TIMEOUT_DEFAULT
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("key_vault_url")
    @classmethod
    def _check_vault_url(cls, value: str) -> str:
        if not value.startswith(("https://", "http://")):
            raise ValueError("KEY_VAULT_URL must be an http(s) URL")
        return value

    @field_validator(
        "jwt_issuer",
        "jwt_audience",
        "key_vault_openid_connect_jwks",
        "website_hostname",
    )
    @classmethod
    def _check_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @property
    def issuer_url(self) -> str:
        """Issuer of the tokens minted by this service."""
        return f"https://{self.website_hostname}"
