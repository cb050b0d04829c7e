"""Tests for the per-namespace certificate authority."""

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from tufhub.pki.ca import (
    CertificateAuthority,
    generate_rsa_key,
    get_certificate_fingerprint,
    serialize_private_key,
)


@pytest.fixture(scope="module")
def ca() -> CertificateAuthority:
    return CertificateAuthority.generate(common_name="test namespace root CA", validity_days=30)


class TestGenerate:
    def test_self_signed_ca(self, ca):
        cert = ca.ca_cert
        assert cert.subject == cert.issuer
        cert.verify_directly_issued_by(cert)
        basic = cert.extensions.get_extension_for_class(x509.BasicConstraints).value
        assert basic.ca is True
        assert basic.path_length == 0

    def test_common_name(self, ca):
        cn = ca.ca_cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value
        assert cn == "test namespace root CA"

    def test_uses_supplied_key(self):
        key = generate_rsa_key()
        generated = CertificateAuthority.generate(common_name="x", key=key)
        assert generated.ca_key is key

    def test_load_round_trip(self, ca):
        loaded = CertificateAuthority.load(
            ca.ca_cert_pem.encode(), serialize_private_key(ca.ca_key)
        )
        assert get_certificate_fingerprint(loaded.ca_cert) == get_certificate_fingerprint(
            ca.ca_cert
        )

    def test_load_rejects_non_rsa_key(self, ca):
        from cryptography.hazmat.primitives import serialization

        ec_pem = ec.generate_private_key(ec.SECP256R1()).private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
        with pytest.raises(TypeError):
            CertificateAuthority.load(ca.ca_cert_pem.encode(), ec_pem)


class TestProvisioningCertificate:
    def test_chains_to_root(self, ca):
        cert, key = ca.issue_provisioning_certificate(ttl_days=1)
        assert cert.issuer == ca.ca_cert.subject
        cert.verify_directly_issued_by(ca.ca_cert)
        assert cert.public_key().public_numbers() == key.public_key().public_numbers()

    def test_leaf_is_client_cert(self, ca):
        cert, _ = ca.issue_provisioning_certificate()
        basic = cert.extensions.get_extension_for_class(x509.BasicConstraints).value
        assert basic.ca is False
        eku = cert.extensions.get_extension_for_class(x509.ExtendedKeyUsage).value
        assert ExtendedKeyUsageOID.CLIENT_AUTH in eku

    def test_each_call_mints_new_identity(self, ca):
        first, _ = ca.issue_provisioning_certificate()
        second, _ = ca.issue_provisioning_certificate()
        assert first.subject != second.subject
        assert first.serial_number != second.serial_number
