"""Shared test fixtures for the Key Vault OIDC issuer."""

from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any
from uuid import UUID

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from httpx import ASGITransport, AsyncClient

from kvoidc.api.deps import (
    get_identity_directory,
    get_key_directory,
    require_caller_claims,
)
from kvoidc.core.app import create_app
from kvoidc.core.settings import Settings
from kvoidc.crypto.types import SigningAlgorithm
from kvoidc.keyvault.types import KeyMaterial, KeyVersion

HOSTNAME = "auth.example.com"
KEY_NAME = "oidc-signing"
REQUESTOR_OID = UUID("8d3a5a4e-2f9a-4c55-9a0e-3b1f0f6b2c11")
GROUP_OID = UUID("0b7c1f3e-6a2d-4e8b-9c3f-5d6e7f8a9b01")


def int_to_bytes(value: int) -> bytes:
    """Encode an unsigned integer as minimal big-endian bytes."""
    byte_length = max(1, (value.bit_length() + 7) // 8)
    return value.to_bytes(byte_length, byteorder="big")


class FakeKeyVault:
    """In-memory key directory that signs with locally held RSA keys."""

    def __init__(self) -> None:
        self.keys: dict[str, tuple[rsa.RSAPrivateKey | None, bool | None, str]] = {}
        self.order: list[str] = []
        self.current: str | None = None
        self.fail_get: set[str] = set()
        self.fail_sign = False
        self.list_calls = 0
        self.get_calls: list[str | None] = []
        self.sign_calls: list[tuple[str, str, SigningAlgorithm, bytes]] = []
        self.listing_closed = False

    def add(
        self,
        version: str,
        private_key: rsa.RSAPrivateKey | None,
        enabled: bool | None = True,
        key_type: str = "RSA-HSM",
    ) -> None:
        self.keys[version] = (private_key, enabled, key_type)
        self.order.append(version)
        self.current = version

    async def list_key_versions(self, name: str) -> AsyncGenerator[KeyVersion, None]:
        self.list_calls += 1
        try:
            for version in self.order:
                yield KeyVersion(name=name, version=version, enabled=self.keys[version][1])
        finally:
            self.listing_closed = True

    async def get_key(self, name: str, version: str | None = None) -> KeyMaterial:
        self.get_calls.append(version)
        version = version or self.current
        if version is None or version in self.fail_get:
            raise RuntimeError(f"vault unavailable for {name}/{version}")
        private_key, enabled, key_type = self.keys[version]
        n = e = None
        if private_key is not None:
            numbers = private_key.public_key().public_numbers()
            n, e = int_to_bytes(numbers.n), int_to_bytes(numbers.e)
        return KeyMaterial(
            name=name, version=version, key_type=key_type, n=n, e=e, enabled=enabled
        )

    async def sign(
        self,
        name: str,
        version: str,
        algorithm: SigningAlgorithm,
        message: bytes,
    ) -> bytes:
        self.sign_calls.append((name, version, algorithm, message))
        if self.fail_sign:
            raise RuntimeError("remote sign failed")
        private_key = self.keys[version][0]
        assert private_key is not None
        return private_key.sign(message, padding.PKCS1v15(), hashes.SHA256())


class FakeGraph:
    """Identity directory returning a canned checkMemberGroups result."""

    def __init__(self) -> None:
        self.result: list[str] | None = []
        self.error: Exception | None = None
        self.calls: list[tuple[UUID, list[UUID]]] = []

    async def check_member_groups(
        self, user_id: UUID, group_ids: list[UUID]
    ) -> list[str] | None:
        self.calls.append((user_id, group_ids))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """One RSA-2048 key shared across the session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_issuer="https://login.example.com/tenant/v2.0",
        jwt_audience="api://kvoidc",
        key_vault_url="https://vault.example.net/",
        key_vault_openid_connect_jwks=KEY_NAME,
        website_hostname=HOSTNAME,
        log_json=False,
    )


@pytest.fixture
def vault(rsa_private_key: rsa.RSAPrivateKey) -> FakeKeyVault:
    fake = FakeKeyVault()
    fake.add("v1", rsa_private_key)
    return fake


@pytest.fixture
def graph() -> FakeGraph:
    return FakeGraph()


@pytest.fixture
def caller_claims() -> dict[str, Any]:
    """Claims the bearer layer would hand to the token route."""
    return {"oid": str(REQUESTOR_OID), "aud": "api://kvoidc"}


@pytest.fixture
async def client(
    settings: Settings,
    vault: FakeKeyVault,
    graph: FakeGraph,
    caller_claims: dict[str, Any],
) -> AsyncIterator[AsyncClient]:
    """Create an httpx test client with in-memory directories."""
    app = create_app(settings)
    app.dependency_overrides[get_key_directory] = lambda: vault
    app.dependency_overrides[get_identity_directory] = lambda: graph
    app.dependency_overrides[require_caller_claims] = lambda: caller_claims

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
