"""Service layer for device provisioning credentials.

Each call mints a new RSA key and leaf certificate chained to the
namespace root CA and returns them as a zip archive. The leaf private key
only ever exists in this function's frame: it is not written to any store.
"""

from cryptography.hazmat.primitives import serialization
from sqlalchemy.ext.asyncio import AsyncSession

from tufhub.config import settings
from tufhub.errors import NotFoundError, StoreFailure, ValidationError
from tufhub.keystore.ids import root_ca_key_id
from tufhub.keystore.protocol import KeyStore, KeyStoreError
from tufhub.logging_config import get_logger
from tufhub.pki.bundle import build_provisioning_archive, gateway_url
from tufhub.pki.ca import CertificateAuthority, get_certificate_fingerprint
from tufhub.services.encryption_service import open_private_key
from tufhub.services.namespace_service import namespace_exists
from tufhub.storage.keys import root_ca_cert_key
from tufhub.storage.protocol import ObjectStore, ObjectStoreError
from tufhub.tuf.constants import KeyUse

logger = get_logger(__name__)


async def load_namespace_ca(
    storage: ObjectStore,
    keystore: KeyStore,
    namespace_id: str,
) -> CertificateAuthority:
    """Load a namespace's root CA from the key store and blob store.

    Raises:
        StoreFailure: If the CA material is missing, unreadable, or the stored
            public key does not belong to the stored certificate.
    """
    try:
        private_pem = open_private_key(
            await keystore.get_key(root_ca_key_id(namespace_id, KeyUse.PRIVATE))
        )
        public_pem = await keystore.get_key(root_ca_key_id(namespace_id, KeyUse.PUBLIC))
        cert_pem = await storage.get(root_ca_cert_key(namespace_id))
    except (KeyStoreError, ObjectStoreError) as e:
        raise StoreFailure(f"Root CA for namespace {namespace_id} is unavailable") from e

    ca = CertificateAuthority.load(cert_pem, private_pem.encode())

    cert_public_pem = ca.ca_cert.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    if cert_public_pem.decode().strip() != public_pem.strip():
        raise StoreFailure(f"Root CA key records for namespace {namespace_id} do not match")

    return ca


async def issue_provisioning_credentials(
    db: AsyncSession,
    storage: ObjectStore,
    keystore: KeyStore,
    namespace_id: str,
) -> bytes:
    """Build a provisioning archive for a namespace.

    Raises:
        NotFoundError: If the namespace does not exist.
        ValidationError: If provisioning is disabled.
        StoreFailure: If the namespace CA cannot be loaded.
    """
    if not await namespace_exists(db, namespace_id):
        raise NotFoundError("Namespace", namespace_id)

    if not settings.provisioning.enabled:
        raise ValidationError("Provisioning credentials are disabled")

    ca = await load_namespace_ca(storage, keystore, namespace_id)

    cert, key = ca.issue_provisioning_certificate(
        ttl_days=settings.provisioning.certificate_ttl_days
    )
    archive = build_provisioning_archive(
        gateway_url(settings.provisioning.gateway_hostname, namespace_id),
        key,
        cert,
        ca.ca_cert,
    )
    del key

    logger.info(
        "Provisioning credentials created",
        namespace_id=namespace_id,
        ca_fingerprint=get_certificate_fingerprint(ca.ca_cert)[:16],
    )
    return archive
