"""
Security utilities for travel provider credentials.

Provides:
- Credential masking for logging and API responses
- Per-store key derivation
- Fernet encryption of persisted provider configuration blobs
"""

import base64
import logging
from typing import Dict

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)


def mask_token(token: str, prefix_len: int = 4, suffix_len: int = 4) -> str:
    """
    Mask token for safe logging.

    Args:
        token: Token to mask
        prefix_len: Number of characters to show at start
        suffix_len: Number of characters to show at end

    Returns:
        Masked token (e.g., "duff...9xyz")

    Examples:
        >>> mask_token("duffel_test_abc123def456")
        'duff...f456'
        >>> mask_token("short")
        '***'
    """
    if not token:
        return "***"

    if len(token) <= (prefix_len + suffix_len):
        return "***"

    return f"{token[:prefix_len]}...{token[-suffix_len:]}"


def mask_credentials(credentials: Dict[str, str], visible_keys=("endpoint",)) -> Dict[str, str]:
    """
    Mask every credential value except non-secret ones (e.g. endpoint URLs).

    Args:
        credentials: Credential map from a ProviderConfig
        visible_keys: Keys whose values are returned as-is

    Returns:
        New dict with secret values masked
    """
    return {
        key: value if key in visible_keys or not value else mask_token(value)
        for key, value in (credentials or {}).items()
    }


def derive_store_key(
    master_key: bytes,
    store_identifier: str,
    iterations: int = 100000
) -> bytes:
    """
    Derive an encryption key for a specific storage key using PBKDF2.

    Compromising one tenant's derived key doesn't expose other tenants' blobs.

    Args:
        master_key: Master encryption key from environment
        store_identifier: Storage key (e.g., "provider_configs_default")
        iterations: PBKDF2 iteration count (default: 100,000)

    Returns:
        32-byte derived key (URL-safe Base64 encoded for Fernet)
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=store_identifier.encode(),
        iterations=iterations,
    )
    derived = kdf.derive(master_key)
    return base64.urlsafe_b64encode(derived)


class CredentialEncryption:
    """
    Encryption/decryption of provider configuration payloads.

    Usage:
        >>> encryption = CredentialEncryption(b"master-secret")
        >>> encrypted = encryption.encrypt('{"providers": {}}', "provider_configs_default")
        >>> encryption.decrypt(encrypted, "provider_configs_default")
        '{"providers": {}}'
    """

    def __init__(self, master_key: bytes):
        """
        Args:
            master_key: Any non-empty secret; Fernet keys are derived from it.

        Raises:
            ValueError: If master_key is empty
        """
        if not master_key:
            raise ValueError("Master key cannot be empty")

        self.master_key = master_key

    def encrypt(self, payload: str, store_identifier: str) -> str:
        """
        Encrypt payload using the store-specific key.

        Raises:
            ValueError: If inputs are invalid
        """
        if not payload:
            raise ValueError("Payload cannot be empty")
        if not store_identifier:
            raise ValueError("Store identifier cannot be empty")

        cipher = Fernet(derive_store_key(self.master_key, store_identifier))
        encrypted = cipher.encrypt(payload.encode())

        logger.debug(f"Encrypted provider payload for {store_identifier}")
        return encrypted.decode()

    def decrypt(self, encrypted_payload: str, store_identifier: str) -> str:
        """
        Decrypt payload using the store-specific key.

        Raises:
            ValueError: If inputs are invalid or decryption fails
        """
        if not encrypted_payload:
            raise ValueError("Encrypted payload cannot be empty")
        if not store_identifier:
            raise ValueError("Store identifier cannot be empty")

        try:
            cipher = Fernet(derive_store_key(self.master_key, store_identifier))
            return cipher.decrypt(encrypted_payload.encode()).decode()
        except InvalidToken as e:
            logger.error(f"Provider payload decryption failed for {store_identifier}")
            raise ValueError("Payload decryption failed (invalid key or corrupted data)") from e
