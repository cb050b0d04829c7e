"""Per-namespace certificate authority for device provisioning.

Handles generation of:
- a self-signed root CA certificate and RSA 2048 key, once per namespace
- provisioning (leaf) certificates chained to that root, once per request
"""

import datetime
import uuid

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from tufhub.logging_config import get_logger

logger = get_logger(__name__)

CA_KEY_SIZE = 2048
PROVISIONING_KEY_SIZE = 2048
ORGANIZATION = "tufhub"


def generate_rsa_key(key_size: int = CA_KEY_SIZE) -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


class CertificateAuthority:
    """Root CA of a single namespace."""

    def __init__(
        self,
        ca_cert: x509.Certificate,
        ca_key: rsa.RSAPrivateKey,
    ):
        self._ca_cert = ca_cert
        self._ca_key = ca_key

    @property
    def ca_cert(self) -> x509.Certificate:
        return self._ca_cert

    @property
    def ca_key(self) -> rsa.RSAPrivateKey:
        return self._ca_key

    @property
    def ca_cert_pem(self) -> str:
        """Return the CA certificate as a PEM string."""
        return self._ca_cert.public_bytes(serialization.Encoding.PEM).decode()

    @classmethod
    def generate(
        cls,
        common_name: str,
        validity_days: int = 3650,
        key: rsa.RSAPrivateKey | None = None,
    ) -> "CertificateAuthority":
        """Generate a self-signed root certificate (no parent chain).

        A fresh RSA 2048 key is generated unless one is supplied.
        """
        private_key = key or generate_rsa_key()
        public_key = private_key.public_key()

        subject = issuer = x509.Name(
            [
                x509.NameAttribute(NameOID.COMMON_NAME, common_name),
                x509.NameAttribute(NameOID.ORGANIZATION_NAME, ORGANIZATION),
            ]
        )

        now = datetime.datetime.now(datetime.UTC)

        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer)
            .public_key(public_key)
            .serial_number(x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(now + datetime.timedelta(days=validity_days))
            .add_extension(
                x509.BasicConstraints(ca=True, path_length=0),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    key_cert_sign=True,
                    crl_sign=True,
                    key_encipherment=False,
                    content_commitment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(public_key),
                critical=False,
            )
            .sign(private_key, hashes.SHA256())
        )

        logger.info(
            "Generated root CA certificate",
            common_name=common_name,
            expires=cert.not_valid_after_utc.isoformat(),
        )

        return cls(ca_cert=cert, ca_key=private_key)

    @classmethod
    def load(cls, cert_pem: bytes, key_pem: bytes) -> "CertificateAuthority":
        """Load CA from PEM-encoded certificate and key."""
        cert = x509.load_pem_x509_certificate(cert_pem)
        key = serialization.load_pem_private_key(key_pem, password=None)
        if not isinstance(key, rsa.RSAPrivateKey):
            raise TypeError(f"Expected RSA private key, got {type(key).__name__}")
        return cls(ca_cert=cert, ca_key=key)

    def issue_provisioning_certificate(
        self,
        ttl_days: int = 365,
    ) -> tuple[x509.Certificate, rsa.RSAPrivateKey]:
        """Issue a leaf certificate for a fresh, never-persisted RSA key.

        The common name is a random UUID; the issuer is this CA's subject.

        Returns:
            Tuple of (certificate, private_key).
        """
        private_key = generate_rsa_key(PROVISIONING_KEY_SIZE)
        public_key = private_key.public_key()
        common_name = str(uuid.uuid4())

        subject = x509.Name(
            [
                x509.NameAttribute(NameOID.COMMON_NAME, common_name),
                x509.NameAttribute(NameOID.ORGANIZATION_NAME, ORGANIZATION),
            ]
        )

        now = datetime.datetime.now(datetime.UTC)

        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(self._ca_cert.subject)
            .public_key(public_key)
            .serial_number(x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(now + datetime.timedelta(days=ttl_days))
            .add_extension(
                x509.BasicConstraints(ca=False, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    key_encipherment=True,
                    content_commitment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=False,
                    crl_sign=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.ExtendedKeyUsage([ExtendedKeyUsageOID.CLIENT_AUTH]),
                critical=False,
            )
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(self._ca_key.public_key()),
                critical=False,
            )
            .sign(self._ca_key, hashes.SHA256())
        )

        logger.info(
            "Issued provisioning certificate",
            common_name=common_name,
            expires=cert.not_valid_after_utc.isoformat(),
        )

        return cert, private_key


# ── Serialization Helpers ────────────────────────────────────────────────


def serialize_private_key(key: rsa.RSAPrivateKey) -> bytes:
    """Serialize private key to unencrypted PKCS#8 PEM."""
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def serialize_public_key(key: rsa.RSAPrivateKey) -> bytes:
    """Serialize the public half of a private key to PEM."""
    return key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def get_certificate_fingerprint(cert: x509.Certificate) -> str:
    """Get SHA256 fingerprint of certificate."""
    return cert.fingerprint(hashes.SHA256()).hex()
