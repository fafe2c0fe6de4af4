"""
Public, high-level helpers for integrating with the UPC gateway.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

import requests

from .core.client import GatewayClient
from .core.config import GatewayConfig, GatewayParameters, load_gateway_config
from .core.notifications import NotificationAction, NotificationResult
from .core.signer import Signer

__all__ = [
    "create_gateway_client",
    "handle_notification",
]


def create_gateway_client(
    *,
    config: Optional[GatewayConfig] = None,
    signer: Optional[Signer] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[GatewayParameters] = None,
    merchant_id: Optional[str] = None,
    terminal_id: Optional[str] = None,
    private_key_path: Optional[str] = None,
    private_key_passphrase: Optional[str] = None,
    gateway_key_path: Optional[str] = None,
    test_mode: Optional[bool] = None,
    payment_url: Optional[str] = None,
    timeout_seconds: Optional[float] = None,
    currency: Optional[str] = None,
) -> GatewayClient:
    """
    Construct a :class:`GatewayClient`.

    Either pass a ready :class:`GatewayConfig` or let the helper assemble
    one from the environment and keyword arguments.
    """
    if config is not None:
        extras = (
            overrides,
            base,
            parameters,
            merchant_id,
            terminal_id,
            private_key_path,
            private_key_passphrase,
            gateway_key_path,
            test_mode,
            payment_url,
            timeout_seconds,
            currency,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built GatewayConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_gateway_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
            merchant_id=merchant_id,
            terminal_id=terminal_id,
            private_key_path=private_key_path,
            private_key_passphrase=private_key_passphrase,
            gateway_key_path=gateway_key_path,
            test_mode=test_mode,
            payment_url=payment_url,
            timeout_seconds=timeout_seconds,
            currency=currency,
        )
    return GatewayClient(cfg, signer=signer, session=session)


def handle_notification(
    fields: Mapping[str, Any],
    *,
    config: Optional[GatewayConfig] = None,
    signer: Optional[Signer] = None,
    outcome_mapping: Optional[Mapping[int, NotificationAction]] = None,
    env_file: Optional[str] = ".env",
) -> Tuple[NotificationResult, str]:
    """
    One-shot notification processing for callers without a long-lived client.
    """
    if config is None:
        client = create_gateway_client(signer=signer, env_file=env_file)
    else:
        client = create_gateway_client(config=config, signer=signer)
    return client.handle_notification(fields, outcome_mapping)
