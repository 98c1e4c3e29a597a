"""RSA signing key whose private half stays in the key-custody service.

``RemoteRSAKey`` stands in wherever the JWT pipeline needs an asymmetric
signing key. Signing is a single call to the key directory; verification is
done locally with the public modulus and exponent, so it keeps working when
the remote service is unreachable.
"""

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from kvoidc.core.errors import InvalidArgumentError, InvalidKeyError
from kvoidc.crypto.keys import int_from_bytes, rsa_public_numbers
from kvoidc.crypto.types import SigningAlgorithm
from kvoidc.keyvault.types import KeyDirectory, KeyMaterial

_HASHES: dict[SigningAlgorithm, type[hashes.HashAlgorithm]] = {
    SigningAlgorithm.RS256: hashes.SHA256,
}


class RemoteRSAKey:
    """Public view of one RSA key version held remotely."""

    def __init__(self, name: str, version: str, public_key: RSAPublicKey) -> None:
        self._name = name
        self._version = version
        self._public_key = public_key

    @classmethod
    def from_key_material(cls, key: KeyMaterial) -> "RemoteRSAKey":
        """Wrap fetched key material; rejects non-RSA or incomplete keys."""
        if not key.is_rsa:
            raise InvalidKeyError(f"Key type {key.key_type!r} is not RSA")
        if not key.n or not key.e or int_from_bytes(key.n) == 0:
            raise InvalidKeyError(f"Key {key.name}/{key.version} has no RSA public components")
        public_key = rsa_public_numbers(key.n, key.e).public_key()
        return cls(key.name, key.version, public_key)

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> str:
        return self._version

    @property
    def kid(self) -> str:
        return self._version

    @property
    def key_size(self) -> int:
        """Bit length of the public modulus."""
        return self._public_key.key_size

    @property
    def public_key(self) -> RSAPublicKey:
        return self._public_key

    @staticmethod
    def supports(algorithm: "str | SigningAlgorithm") -> bool:
        """True only for algorithms this key can sign with."""
        return algorithm in SigningAlgorithm.__members__.values()

    def create_signature_provider(
        self,
        directory: KeyDirectory,
        algorithm: "str | SigningAlgorithm" = SigningAlgorithm.RS256,
    ) -> "RemoteSignatureProvider":
        """Bind this key to ``directory`` for one algorithm.

        Unsupported algorithms raise ``UnsupportedAlgorithmError`` here,
        before any signing is attempted.
        """
        return RemoteSignatureProvider(directory, self, SigningAlgorithm.parse(algorithm))


class RemoteSignatureProvider:
    """Signs through the key directory and verifies locally."""

    def __init__(
        self,
        directory: KeyDirectory,
        key: RemoteRSAKey,
        algorithm: SigningAlgorithm,
    ) -> None:
        self._directory = directory
        self._key = key
        self._algorithm = algorithm

    @property
    def key(self) -> RemoteRSAKey:
        return self._key

    @property
    def algorithm(self) -> SigningAlgorithm:
        return self._algorithm

    async def sign(self, message: bytes) -> bytes:
        """Request one remote signature over ``message``. No retries."""
        if not message:
            raise InvalidArgumentError("message must not be empty")
        return await self._directory.sign(
            self._key.name, self._key.version, self._algorithm, bytes(message)
        )

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Verify ``signature`` over ``message`` with the public key only."""
        if not message:
            raise InvalidArgumentError("message must not be empty")
        if not signature:
            raise InvalidArgumentError("signature must not be empty")
        return self._verify(bytes(message), bytes(signature))

    def verify_range(
        self,
        message: bytes,
        message_offset: int,
        message_length: int,
        signature: bytes,
        signature_offset: int,
        signature_length: int,
    ) -> bool:
        """Verify a slice of ``signature`` over a slice of ``message``."""
        if not message:
            raise InvalidArgumentError("message must not be empty")
        if not signature:
            raise InvalidArgumentError("signature must not be empty")
        _check_range("message", len(message), message_offset, message_length)
        _check_range("signature", len(signature), signature_offset, signature_length)
        msg_view = memoryview(message)[message_offset : message_offset + message_length]
        sig_view = memoryview(signature)[
            signature_offset : signature_offset + signature_length
        ]
        return self._verify(msg_view.tobytes(), sig_view.tobytes())

    def _verify(self, message: bytes, signature: bytes) -> bool:
        try:
            self._key.public_key.verify(
                signature,
                message,
                padding.PKCS1v15(),
                _HASHES[self._algorithm](),
            )
        except InvalidSignature:
            return False
        return True


def _check_range(label: str, size: int, offset: int, length: int) -> None:
    if offset < 0:
        raise InvalidArgumentError(f"{label}_offset must not be negative")
    if length < 1:
        raise InvalidArgumentError(f"{label}_length must be at least 1")
    if offset + length > size:
        raise InvalidArgumentError(
            f"{label}_offset + {label}_length exceeds the {label} length"
        )
