"""OpenID Connect Discovery document builder."""

from pydantic import BaseModel


class DiscoveryDocument(BaseModel):
    """OIDC .well-known/openid-configuration response."""

    issuer: str
    jwks_uri: str


def build_discovery(hostname: str) -> DiscoveryDocument:
    """Build the discovery document for the service's public hostname."""
    issuer = f"https://{hostname}"
    return DiscoveryDocument(issuer=issuer, jwks_uri=f"{issuer}/jwks")
