"""Relay client exception hierarchy."""


class RelayError(Exception):
    """Base exception for all relay-related errors."""


class UnsupportedProtocol(RelayError):
    """Relay protocol identifier is not registered."""

    def __init__(self, protocol: str):
        self.protocol = protocol
        super().__init__(f"Relay Protocol not supported: {protocol}")


class DecodeError(RelayError):
    """Relay message could not be decrypted or parsed."""
