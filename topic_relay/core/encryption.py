"""Symmetric payload encryption using Fernet (AES-128-CBC + HMAC-SHA256).

Relay peers agree on a shared key out of band. Each call derives a Fernet key
from that shared key with HKDF-SHA256, so the raw shared key never becomes the
cipher key directly and nothing is cached between calls.

Security:
- Fernet: AES-128-CBC with PKCS7 padding + HMAC-SHA256 for authentication
- HKDF: SHA256, fixed context string, 32-byte output
- A token produced with one shared key fails authentication under any other
"""

import base64
import logging
import os
from typing import TYPE_CHECKING, Union

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

if TYPE_CHECKING:
    from topic_relay.relay.models import KeyMaterial

logger = logging.getLogger(__name__)

HKDF_INFO = b"topic-relay payload encryption"
SHARED_KEY_LENGTH = 32  # 256 bits
MIN_SHARED_KEY_LENGTH = 16


def _shared_key_bytes(shared_key: Union[str, bytes]) -> bytes:
    if isinstance(shared_key, bytes):
        key = shared_key
    else:
        try:
            key = bytes.fromhex(shared_key)
        except ValueError as e:
            raise ValueError("Shared key must be a hex string") from e
    if len(key) < MIN_SHARED_KEY_LENGTH:
        raise ValueError(f"Shared key must be at least {MIN_SHARED_KEY_LENGTH} bytes")
    return key


def derive_key(shared_key: Union[str, bytes]) -> bytes:
    """
    Derive a Fernet-compatible key from a shared key using HKDF.

    Args:
        shared_key: Hex string (or raw bytes) agreed between relay peers

    Returns:
        Base64-encoded 32-byte key suitable for Fernet
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,  # Fernet uses 32-byte keys
        salt=None,
        info=HKDF_INFO,
    )
    key = hkdf.derive(_shared_key_bytes(shared_key))
    # Fernet requires URL-safe base64-encoded key
    return base64.urlsafe_b64encode(key)


def encrypt(plaintext: str, keys: "KeyMaterial") -> str:
    """
    Encrypt a string with the Fernet key derived from ``keys``.

    Returns:
        Base64-encoded Fernet token (ciphertext)
    """
    fernet = Fernet(derive_key(keys.shared_key.get_secret_value()))
    token = fernet.encrypt(plaintext.encode())
    return token.decode()  # Fernet tokens are already base64


def decrypt(ciphertext: str, keys: "KeyMaterial") -> str:
    """
    Decrypt a Fernet token produced by :func:`encrypt`.

    Raises:
        ValueError: If decryption fails (wrong key or corrupted data)
    """
    fernet = Fernet(derive_key(keys.shared_key.get_secret_value()))
    try:
        plaintext = fernet.decrypt(ciphertext.encode())
        return plaintext.decode()
    except (InvalidToken, UnicodeDecodeError) as e:
        logger.debug("Decryption failed - invalid key or corrupted data")
        raise ValueError("Decryption failed - invalid key or corrupted data") from e


def generate_shared_key() -> str:
    """
    Generate a cryptographically secure random shared key.

    Returns:
        64-character hex string (32 random bytes)
    """
    return os.urandom(SHARED_KEY_LENGTH).hex()
