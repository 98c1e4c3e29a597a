"""Read-only views of keys held by the key-custody service."""

from collections.abc import AsyncGenerator
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from kvoidc.crypto.types import SigningAlgorithm

KEY_TYPE_RSA = "RSA"
KEY_TYPE_RSA_HSM = "RSA-HSM"
RSA_KEY_TYPES = frozenset({KEY_TYPE_RSA, KEY_TYPE_RSA_HSM})


class KeyVersion(BaseModel):
    """One entry of a key's version listing."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    enabled: bool | None = None


class KeyMaterial(BaseModel):
    """Public components and attributes of one key version."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    key_type: str
    n: bytes | None = None
    e: bytes | None = None
    enabled: bool | None = None

    @property
    def is_rsa(self) -> bool:
        return self.key_type in RSA_KEY_TYPES


class KeyDirectory(Protocol):
    """Operations the issuer needs from the key-custody service."""

    def list_key_versions(self, name: str) -> AsyncGenerator[KeyVersion, None]:
        """Lazily enumerate the versions of ``name``."""
        ...

    async def get_key(self, name: str, version: str | None = None) -> KeyMaterial:
        """Fetch one version, or the current one when ``version`` is None."""
        ...

    async def sign(
        self,
        name: str,
        version: str,
        algorithm: SigningAlgorithm,
        message: bytes,
    ) -> bytes:
        """Sign ``message`` remotely with the given key version."""
        ...
