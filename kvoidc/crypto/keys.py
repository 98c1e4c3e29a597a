"""RSA public key helpers and JWK conversion."""

import base64

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicNumbers

from kvoidc.crypto.types import JWKEntry
from kvoidc.keyvault.types import KeyMaterial


def base64url(raw: bytes) -> str:
    """Encode bytes as base64url without padding."""
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def int_from_bytes(raw: bytes) -> int:
    """Decode a big-endian unsigned integer."""
    return int.from_bytes(raw, byteorder="big")


def rsa_public_numbers(n: bytes, e: bytes) -> RSAPublicNumbers:
    """Build public numbers from raw modulus and exponent bytes."""
    return RSAPublicNumbers(e=int_from_bytes(e), n=int_from_bytes(n))


def key_material_to_jwk_entry(key: KeyMaterial) -> JWKEntry:
    """Project an RSA key version onto its JWK form, keyed by version."""
    if not key.n or not key.e:
        raise ValueError(f"Key {key.name}/{key.version} has no RSA public components")
    return JWKEntry(kid=key.version, n=base64url(key.n), e=base64url(key.e))
