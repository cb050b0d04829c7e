"""Provisioning credential archive.

A zip holding ``autoprov.url`` (the device gateway URL for the namespace)
and ``autoprov_credentials.p12`` (password-less PKCS#12 with the leaf key,
the leaf certificate and the root CA certificate).
"""

import io
import zipfile

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12

URL_FILENAME = "autoprov.url"
CREDENTIALS_FILENAME = "autoprov_credentials.p12"
ARCHIVE_MEDIA_TYPE = "application/zip"


def gateway_url(gateway_hostname: str, namespace_id: str) -> str:
    """URL devices of this namespace provision against."""
    return f"{gateway_hostname}/api/v0/director/{namespace_id}"


def build_pkcs12(
    key: rsa.RSAPrivateKey,
    cert: x509.Certificate,
    ca_cert: x509.Certificate,
) -> bytes:
    return pkcs12.serialize_key_and_certificates(
        name=None,
        key=key,
        cert=cert,
        cas=[ca_cert],
        encryption_algorithm=serialization.NoEncryption(),
    )


def build_provisioning_archive(
    url: str,
    key: rsa.RSAPrivateKey,
    cert: x509.Certificate,
    ca_cert: x509.Certificate,
) -> bytes:
    """Zip the gateway URL and the PKCS#12 bundle into one archive."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(URL_FILENAME, url.encode("utf-8"))
        archive.writestr(CREDENTIALS_FILENAME, build_pkcs12(key, cert, ca_cert))
    return buf.getvalue()
