"""Azure Key Vault implementation of the key directory."""

import hashlib
from collections.abc import AsyncGenerator
from typing import Any

import structlog
from azure.core.credentials_async import AsyncTokenCredential
from azure.keyvault.keys import KeyVaultKey
from azure.keyvault.keys.aio import KeyClient
from azure.keyvault.keys.crypto import SignatureAlgorithm

from kvoidc.crypto.types import SigningAlgorithm
from kvoidc.keyvault.types import KeyMaterial, KeyVersion

logger = structlog.get_logger(__name__)

_DIGESTS = {SigningAlgorithm.RS256: hashlib.sha256}


def _to_key_material(key: KeyVaultKey) -> KeyMaterial:
    key_type = getattr(key.key_type, "value", key.key_type)
    return KeyMaterial(
        name=key.name,
        version=key.properties.version,
        key_type=str(key_type),
        n=key.key.n,
        e=key.key.e,
        enabled=key.properties.enabled,
    )


class KeyVaultDirectory:
    """Lists, reads and signs with keys in one vault.

    The underlying ``KeyClient`` owns the HTTP pipeline and is closed with
    ``aclose``. Cryptography clients borrow that pipeline and are never
    closed on their own.
    """

    def __init__(self, client: KeyClient) -> None:
        self._client = client

    @classmethod
    def from_url(
        cls, vault_url: str, credential: AsyncTokenCredential, **kwargs: Any
    ) -> "KeyVaultDirectory":
        return cls(KeyClient(vault_url=vault_url, credential=credential, **kwargs))

    async def list_key_versions(self, name: str) -> AsyncGenerator[KeyVersion, None]:
        """Yield versions page by page as the vault returns them."""
        async for props in self._client.list_properties_of_key_versions(name):
            yield KeyVersion(
                name=props.name,
                version=props.version,
                enabled=props.enabled,
            )

    async def get_key(self, name: str, version: str | None = None) -> KeyMaterial:
        key = await self._client.get_key(name, version=version)
        return _to_key_material(key)

    async def sign(
        self,
        name: str,
        version: str,
        algorithm: SigningAlgorithm,
        message: bytes,
    ) -> bytes:
        """Hash locally and have the vault sign the digest."""
        digest = _DIGESTS[algorithm](message).digest()
        crypto = self._client.get_cryptography_client(name, key_version=version)
        result = await crypto.sign(SignatureAlgorithm(algorithm.value), digest)
        logger.debug("remote_sign_completed", key_name=name, key_version=version)
        return result.signature

    async def aclose(self) -> None:
        await self._client.close()
