"""
Relay payload codec.

Payloads travel as JSON text. With key material the text is encrypted into a
Fernet token; without it the text is UTF-8 hex-encoded, which is reversible
and carries no confidentiality. The mode is picked only by whether keys are
passed, so a message encoded with keys must be decoded with matching keys.
"""
import json
from typing import Any, Optional

from topic_relay.core import encryption
from .exceptions import DecodeError
from .models import KeyMaterial


def encode(payload: Any, keys: Optional[KeyMaterial] = None) -> str:
    """Serialize a payload into a relay message string."""
    text = json.dumps(payload, separators=(",", ":"))
    if keys is not None:
        return encryption.encrypt(text, keys)
    return text.encode("utf-8").hex()


def decode(message: str, keys: Optional[KeyMaterial] = None) -> Any:
    """Inverse of :func:`encode`. Raises DecodeError on any failure."""
    if not isinstance(message, str):
        raise DecodeError(f"Relay message must be a string, got {type(message).__name__}")

    if keys is not None:
        try:
            text = encryption.decrypt(message, keys)
        except ValueError as e:
            raise DecodeError(str(e)) from e
    else:
        try:
            text = bytes.fromhex(message).decode("utf-8")
        except ValueError as e:
            raise DecodeError(f"Relay message is not hex-encoded UTF-8: {e}") from e

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Relay message is not valid JSON: {e}") from e
