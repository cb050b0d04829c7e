"""TUF role key generation and key id derivation.

Keys are serialized the way TUF metadata embeds them: RSA and ECDSA public
keys as PEM SubjectPublicKeyInfo, Ed25519 public keys as raw hex. The key id
is the SHA-256 of the OLPC canonical JSON form of that public key object,
so ids match the ones securesystemslib and TUF clients derive.
"""

import hashlib
from dataclasses import dataclass
from typing import Any

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from securesystemslib.formats import encode_canonical

from tufhub.config import KeyType

RSA_KEY_SIZE = 3072

_SCHEMES: dict[KeyType, str] = {
    KeyType.RSA: "rsassa-pss-sha256",
    KeyType.ED25519: "ed25519",
    KeyType.ECDSA: "ecdsa-sha2-nistp256",
}


@dataclass(frozen=True)
class KeyPair:
    """An asymmetric key pair serialized for storage and for TUF metadata."""

    key_type: KeyType
    private_pem: str
    public_pem: str
    public_value: str

    @property
    def scheme(self) -> str:
        return _SCHEMES[self.key_type]

    def to_tuf_key(self) -> dict[str, Any]:
        """Public key object as it appears under ``signed.keys`` in TUF metadata."""
        return {
            "keytype": self.key_type.value,
            "scheme": self.scheme,
            "keyval": {"public": self.public_value},
        }

    @property
    def key_id(self) -> str:
        return compute_key_id(self.to_tuf_key())

    def __repr__(self) -> str:
        return f"KeyPair(key_type={self.key_type.value!r}, key_id={self.key_id!r})"


def compute_key_id(tuf_key: dict[str, Any]) -> str:
    """Hex SHA-256 of a TUF public key object's OLPC canonical JSON encoding.

    Canonical JSON leaves control characters unescaped, so a PEM key value is
    hashed with literal newlines, as TUF clients hash it.
    """
    return hashlib.sha256(encode_canonical(tuf_key).encode("utf-8")).hexdigest()


def _generate_private_key(key_type: KeyType) -> PrivateKeyTypes:
    match key_type:
        case KeyType.RSA:
            return rsa.generate_private_key(public_exponent=65537, key_size=RSA_KEY_SIZE)
        case KeyType.ED25519:
            return ed25519.Ed25519PrivateKey.generate()
        case KeyType.ECDSA:
            return ec.generate_private_key(ec.SECP256R1())
    raise ValueError(f"Unsupported key type: {key_type}")


def generate_key_pair(key_type: KeyType) -> KeyPair:
    """Generate a fresh key pair of the given type."""
    private_key = _generate_private_key(key_type)
    public_key = private_key.public_key()

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()

    if key_type is KeyType.ED25519:
        public_value = public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        ).hex()
    else:
        public_value = public_pem

    return KeyPair(
        key_type=key_type,
        private_pem=private_pem,
        public_pem=public_pem,
        public_value=public_value,
    )
