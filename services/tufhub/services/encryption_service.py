"""Fernet encryption for private key material written to the key store.

Uses AES-128-CBC + HMAC-SHA256 via the cryptography library's Fernet.
Master key sourced from the TUFHUB_ENCRYPTION_KEY environment variable.
Public keys and certificates are never encrypted.
"""

from cryptography.fernet import Fernet, InvalidToken

from tufhub.logging_config import get_logger

logger = get_logger(__name__)

_fernet: Fernet | None = None

# Distinguishes encrypted secrets from ones written while no key was configured
_KEY_MAGIC = "THENC1:"


def init_encryption() -> None:
    """Initialize encryption from config. Call during API lifespan startup."""
    global _fernet  # noqa: PLW0603

    from tufhub.config import settings

    key = settings.encryption_key
    if not key:
        logger.warning(
            "No encryption key configured (TUFHUB_ENCRYPTION_KEY). "
            "Private keys will be stored unencrypted."
        )
        _fernet = None
        return

    try:
        _fernet = Fernet(key.encode())
    except ValueError as e:
        raise RuntimeError(f"Invalid TUFHUB_ENCRYPTION_KEY: {e}") from e
    logger.info("Encryption initialized")


def reset_encryption() -> None:
    global _fernet  # noqa: PLW0603
    _fernet = None


def seal_private_key(pem: str) -> str:
    """Encrypt a PEM private key for storage.

    Without a configured key the PEM is returned unchanged, which keeps
    development setups usable.
    """
    if _fernet is None:
        return pem
    return _KEY_MAGIC + _fernet.encrypt(pem.encode()).decode()


def open_private_key(stored: str) -> str:
    """Inverse of seal_private_key. Plain PEM values pass through as-is."""
    if not stored.startswith(_KEY_MAGIC):
        return stored
    if _fernet is None:
        raise RuntimeError(
            "Key material is encrypted but no encryption key is configured. "
            "Set TUFHUB_ENCRYPTION_KEY to read it."
        )
    try:
        return _fernet.decrypt(stored[len(_KEY_MAGIC) :].encode()).decode()
    except InvalidToken:
        raise ValueError("Failed to decrypt key: key mismatch or corrupted data") from None
