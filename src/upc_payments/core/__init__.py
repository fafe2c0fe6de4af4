"""
Core primitives implementing the UPC payment protocol.
"""

from .client import GatewayClient, PaymentForm, resolve_payment_url
from .config import (
    PRODUCTION_URL,
    TEST_URL,
    GatewayConfig,
    GatewayParameters,
    load_gateway_config,
)
from .environment import GatewayEnvironment, build_environment, load_env_file
from .errors import (
    ConfigError,
    GatewayUnreachable,
    KeyUnavailable,
    MalformedPayload,
    NoRedirectIssued,
    UpcError,
)
from .keys import FileKeySource, KeySource, MemoryKeySource
from .notifications import (
    DEFAULT_OUTCOME_MAPPING,
    NotificationAction,
    NotificationPayload,
    NotificationResult,
    NotificationStatus,
    map_tran_code,
    render_acknowledgment,
)
from .payloads import PaymentRequest, build_form_fields, to_minor_units
from .signer import VERIFICATION_FIELDS, MerchantIdentity, Signer

__all__ = [
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
    "VERIFICATION_FIELDS",
    "build_environment",
    "build_form_fields",
    "load_env_file",
    "load_gateway_config",
    "map_tran_code",
    "render_acknowledgment",
    "resolve_payment_url",
    "to_minor_units",
]
