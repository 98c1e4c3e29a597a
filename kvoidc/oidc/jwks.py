"""JSON Web Key Set assembly from key directory versions."""

from contextlib import aclosing

import structlog

from kvoidc.core.errors import ErrorKind
from kvoidc.core.result import Err, Ok, Result, attempt, attempt_async
from kvoidc.crypto.keys import key_material_to_jwk_entry
from kvoidc.crypto.types import JWKEntry, JWKSResponse
from kvoidc.keyvault.types import KeyDirectory

logger = structlog.get_logger(__name__)


async def build_jwks(directory: KeyDirectory, key_name: str) -> Result[JWKSResponse]:
    """Collect one JWK per enabled RSA version of ``key_name``.

    Versions are pulled one at a time; the first failure ends the
    enumeration and no partial key set is returned.
    """
    entries: list[JWKEntry] = []
    async with aclosing(directory.list_key_versions(key_name)) as versions:
        while True:
            step = await attempt_async(
                anext(versions, None), ErrorKind.DEPENDENCY, "Failed to get key versions"
            )
            if isinstance(step, Err):
                return step
            version = step.value
            if version is None:
                break
            if not version.enabled:
                continue

            fetched = await attempt_async(
                directory.get_key(key_name, version.version),
                ErrorKind.DEPENDENCY,
                "Failed to get key",
            )
            if isinstance(fetched, Err):
                return fetched
            key = fetched.value
            if not key.is_rsa:
                logger.debug("jwks_key_skipped", kid=key.version, key_type=key.key_type)
                continue

            entry = attempt(
                lambda: key_material_to_jwk_entry(key),
                ErrorKind.DEPENDENCY,
                "Failed to encode RSA public key",
            )
            if isinstance(entry, Err):
                return entry
            entries.append(entry.value)

    return Ok(JWKSResponse(keys=entries))
