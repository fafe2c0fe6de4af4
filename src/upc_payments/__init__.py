"""
Public facade for the UPC payment gateway adapter.

Integrators can ``from upc_payments import ...`` everything they need
without navigating the package.
"""

from .api import create_gateway_client, handle_notification
from .core import (
    DEFAULT_OUTCOME_MAPPING,
    PRODUCTION_URL,
    TEST_URL,
    ConfigError,
    FileKeySource,
    GatewayClient,
    GatewayConfig,
    GatewayEnvironment,
    GatewayParameters,
    GatewayUnreachable,
    KeySource,
    KeyUnavailable,
    MalformedPayload,
    MemoryKeySource,
    MerchantIdentity,
    NoRedirectIssued,
    NotificationAction,
    NotificationPayload,
    NotificationResult,
    NotificationStatus,
    PaymentForm,
    PaymentRequest,
    Signer,
    UpcError,
    build_environment,
    load_env_file,
    load_gateway_config,
    render_acknowledgment,
    to_minor_units,
)

__all__ = (
    "ConfigError",
    "DEFAULT_OUTCOME_MAPPING",
    "FileKeySource",
    "GatewayClient",
    "GatewayConfig",
    "GatewayEnvironment",
    "GatewayParameters",
    "GatewayUnreachable",
    "KeySource",
    "KeyUnavailable",
    "MalformedPayload",
    "MemoryKeySource",
    "MerchantIdentity",
    "NoRedirectIssued",
    "NotificationAction",
    "NotificationPayload",
    "NotificationResult",
    "NotificationStatus",
    "PRODUCTION_URL",
    "PaymentForm",
    "PaymentRequest",
    "Signer",
    "TEST_URL",
    "UpcError",
    "build_environment",
    "create_gateway_client",
    "handle_notification",
    "load_env_file",
    "load_gateway_config",
    "render_acknowledgment",
    "to_minor_units",
)
