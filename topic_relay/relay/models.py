"""Pydantic v2 models for per-call relay options."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class KeyMaterial(BaseModel):
    """Symmetric key material for one publish/subscribe call."""
    model_config = ConfigDict(frozen=True)

    shared_key: SecretStr = Field(description="Hex-encoded shared key, at least 16 bytes")

    @field_validator("shared_key")
    @classmethod
    def validate_shared_key(cls, v):
        try:
            raw = bytes.fromhex(v.get_secret_value())
        except ValueError as e:
            raise ValueError("shared_key must be a hex string") from e
        if len(raw) < 16:
            raise ValueError("shared_key must decode to at least 16 bytes")
        return v


class PublishOptions(BaseModel):
    """Options for Relay.publish. Unset fields fall back to RelaySettings."""
    protocol: Optional[str] = None
    ttl: Optional[int] = Field(default=None, ge=0)  # seconds; 0 = default
    encrypt_keys: Optional[KeyMaterial] = None


class SubscribeOptions(BaseModel):
    """Options for Relay.subscribe and Relay.unsubscribe."""
    protocol: Optional[str] = None
    decrypt_keys: Optional[KeyMaterial] = None
