"""
Exception hierarchy for the UPC gateway adapter.
"""

from __future__ import annotations

__all__ = [
    "UpcError",
    "ConfigError",
    "KeyUnavailable",
    "MalformedPayload",
    "GatewayUnreachable",
    "NoRedirectIssued",
]


class UpcError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(UpcError):
    """Raised when the supplied configuration is invalid."""


class KeyUnavailable(UpcError):
    """
    Raised when a signing or verification key cannot be loaded.

    Not retryable: the key source has to be fixed by an operator.
    """


class MalformedPayload(UpcError):
    """Raised when an inbound notification lacks a required field or signature."""


class GatewayUnreachable(UpcError):
    """Raised on transport failures (including timeouts) talking to the gateway."""


class NoRedirectIssued(UpcError):
    """
    Raised when the gateway answered but did not redirect.

    The gateway signals a rejected payment this way, so retrying with the
    same parameters will not help.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
