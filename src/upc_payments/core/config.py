"""
Configuration objects for the UPC gateway adapter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .environment import build_environment, parse_bool
from .errors import ConfigError
from .keys import FileKeySource
from .signer import MerchantIdentity, Signer

__all__ = [
    "ConfigError",
    "GatewayConfig",
    "GatewayParameters",
    "PRODUCTION_URL",
    "TEST_URL",
    "load_gateway_config",
]

PRODUCTION_URL = "https://secure.upc.ua/go/enter"
TEST_URL = "https://ecg.test.upc.ua/go/enter"

DEFAULT_CURRENCY = "980"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "upc-payments/python"

_PARAMETER_TO_ENV_KEY = {
    "merchant_id": "UPC_MERCHANT_ID",
    "terminal_id": "UPC_TERMINAL_ID",
    "private_key_path": "UPC_PRIVATE_KEY_PATH",
    "private_key_passphrase": "UPC_PRIVATE_KEY_PASSPHRASE",
    "gateway_key_path": "UPC_GATEWAY_KEY_PATH",
    "test_mode": "UPC_TEST_MODE",
    "payment_url": "UPC_PAYMENT_URL",
    "timeout_seconds": "UPC_TIMEOUT_SECONDS",
    "currency": "UPC_CURRENCY",
}


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class GatewayParameters:
    """
    Keyword-style bundle of settings; every ``None`` field is left to the
    environment.
    """

    merchant_id: Optional[str] = None
    terminal_id: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_passphrase: Optional[str] = None
    gateway_key_path: Optional[str] = None
    test_mode: Optional[bool | str] = None
    payment_url: Optional[str] = None
    timeout_seconds: Optional[float | int | str] = None
    currency: Optional[str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _collect_parameter_overrides(
    parameters: Optional[GatewayParameters],
    explicit: Mapping[str, Any],
) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    if parameters is not None:
        overrides.update(parameters.as_overrides())

    for key, value in explicit.items():
        if value is None:
            continue
        try:
            env_key = _PARAMETER_TO_ENV_KEY[key]
        except KeyError as exc:
            raise TypeError(f"Unknown gateway parameter '{key}'") from exc
        overrides[env_key] = _stringify(value)
    return overrides


@dataclass(frozen=True)
class GatewayConfig:
    """
    Everything the adapter needs to talk to one UPC terminal.

    ``test_mode`` selects between :data:`TEST_URL` and :data:`PRODUCTION_URL`;
    an explicit ``payment_url`` wins over both. ``extra_fields`` are merged
    into every outbound request after the protocol defaults, but can never
    replace a protocol-reserved field.
    """

    merchant_id: str
    terminal_id: str
    private_key_path: str = ""
    gateway_key_path: str = ""
    private_key_passphrase: Optional[str] = None
    test_mode: bool = False
    payment_url: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    currency: str = DEFAULT_CURRENCY
    user_agent: str = DEFAULT_USER_AGENT
    extra_fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        MerchantIdentity(merchant_id=self.merchant_id, terminal_id=self.terminal_id)
        if self.timeout_seconds <= 0:
            raise ConfigError("timeout_seconds must be greater than zero")
        if not str(self.currency).strip():
            raise ConfigError("currency must not be empty")

    @property
    def identity(self) -> MerchantIdentity:
        return MerchantIdentity(merchant_id=self.merchant_id, terminal_id=self.terminal_id)

    @property
    def gateway_url(self) -> str:
        if self.payment_url:
            return self.payment_url
        return TEST_URL if self.test_mode else PRODUCTION_URL

    def build_signer(self) -> Signer:
        return Signer(
            self.identity,
            FileKeySource(self.private_key_path),
            FileKeySource(self.gateway_key_path),
            private_key_passphrase=self.private_key_passphrase,
        )

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "GatewayConfig":
        merchant_id = (values.get("UPC_MERCHANT_ID") or "").strip()
        if not merchant_id:
            raise ConfigError("UPC_MERCHANT_ID must be provided")
        terminal_id = (values.get("UPC_TERMINAL_ID") or "").strip()
        if not terminal_id:
            raise ConfigError("UPC_TERMINAL_ID must be provided")

        try:
            test_mode = parse_bool(values.get("UPC_TEST_MODE"), False)
        except ValueError as exc:
            raise ConfigError(f"UPC_TEST_MODE is invalid: {exc}") from exc

        timeout_raw = values.get("UPC_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
        try:
            timeout_seconds = float(timeout_raw)
        except ValueError as exc:
            raise ConfigError(
                f"UPC_TIMEOUT_SECONDS must be a number, got '{timeout_raw}'"
            ) from exc

        payment_url = (values.get("UPC_PAYMENT_URL") or "").strip() or None

        return cls(
            merchant_id=merchant_id,
            terminal_id=terminal_id,
            private_key_path=(values.get("UPC_PRIVATE_KEY_PATH") or "").strip(),
            gateway_key_path=(values.get("UPC_GATEWAY_KEY_PATH") or "").strip(),
            private_key_passphrase=values.get("UPC_PRIVATE_KEY_PASSPHRASE") or None,
            test_mode=test_mode,
            payment_url=payment_url,
            timeout_seconds=timeout_seconds,
            currency=(values.get("UPC_CURRENCY") or DEFAULT_CURRENCY).strip(),
        )

    @classmethod
    def from_env(
        cls,
        *,
        env_file: Optional[str] = ".env",
        overrides: Optional[Mapping[str, str]] = None,
        base: Optional[Mapping[str, str]] = None,
        parameters: Optional[GatewayParameters] = None,
        **explicit: Any,
    ) -> "GatewayConfig":
        parameter_overrides = _collect_parameter_overrides(parameters, explicit)
        merged_overrides = dict(overrides or {})
        merged_overrides.update(parameter_overrides)

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(environment.variables)


def load_gateway_config(
    *,
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
) -> GatewayConfig:
    """
    Convenience wrapper around :meth:`GatewayConfig.from_env`.

    Settings may come from environment variables, a ``.env`` file, keyword
    arguments, or any mix of them; keyword arguments win.
    """
    return GatewayConfig.from_env(
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
