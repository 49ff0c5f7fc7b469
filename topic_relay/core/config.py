"""Environment-driven configuration with Pydantic v2."""

from functools import lru_cache
from typing import Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class RelaySettings(BaseSettings):
    """Relay client settings driven by RELAY_* environment variables."""

    # Relay Protocol
    default_protocol: str = Field(default="waku")
    default_publish_ttl: int = Field(default=86400, ge=1)  # 1 day

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    @field_validator("default_protocol")
    @classmethod
    def validate_default_protocol(cls, v):
        """Reject protocols the relay client cannot speak."""
        from topic_relay.relay.protocol import RELAY_JSONRPC

        if v not in RELAY_JSONRPC:
            raise ValueError(f"Relay Protocol not supported: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        if v.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    model_config = {
        "env_prefix": "RELAY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> RelaySettings:
    """Get the process-wide settings instance."""
    return RelaySettings()
