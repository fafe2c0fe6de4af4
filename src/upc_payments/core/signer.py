"""
Signature generation and verification for the UPC protocol.

Outbound requests are signed with the merchant's RSA key over a fixed,
positional field list. Inbound notifications are verified against the
gateway's key over a different list that skips absent fields. The two
conventions are not interchangeable: a merchant signature never verifies
as a notification signature.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

from Crypto.Hash import SHA1
from Crypto.PublicKey import RSA
from Crypto.Signature import pkcs1_15

from .errors import ConfigError, KeyUnavailable, MalformedPayload
from .keys import KeySource, as_key_source

__all__ = [
    "MerchantIdentity",
    "Signer",
    "VERIFICATION_FIELDS",
    "FIELD_SEPARATOR",
]

FIELD_SEPARATOR = ";"

# Order matters: it is part of the gateway's signature scheme.
VERIFICATION_FIELDS: Tuple[str, ...] = (
    "MerchantID",
    "TerminalID",
    "PurchaseTime",
    "OrderID",
    "XID",
    "Currency",
    "TotalAmount",
    "SD",
    "TranCode",
    "ApprovalCode",
)


@dataclass(frozen=True)
class MerchantIdentity:
    merchant_id: str
    terminal_id: str

    def __post_init__(self) -> None:
        if not str(self.merchant_id or "").strip():
            raise ConfigError("merchant_id must not be empty")
        if not str(self.terminal_id or "").strip():
            raise ConfigError("terminal_id must not be empty")


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _import_key(source: KeySource, *, passphrase: Optional[str] = None, purpose: str) -> RSA.RsaKey:
    data = source.load()
    try:
        return RSA.import_key(data, passphrase=passphrase)
    except (ValueError, IndexError, TypeError) as exc:
        raise KeyUnavailable(f"Unable to parse {purpose} key: {exc}") from exc


class Signer:
    """
    Holds the merchant identity and key references; signs and verifies.

    Instances are read-only after construction and safe to share between
    threads.
    """

    def __init__(
        self,
        identity: MerchantIdentity,
        private_key: Union[KeySource, str, Path, None],
        gateway_key: Union[KeySource, str, Path, None],
        *,
        private_key_passphrase: Optional[str] = None,
    ) -> None:
        self.identity = identity
        self.private_key = as_key_source(private_key)
        self.gateway_key = as_key_source(gateway_key)
        self._passphrase = private_key_passphrase

    def signing_payload(
        self,
        *,
        purchase_time: Any,
        order_id: Any,
        currency: Any,
        total_amount: Any,
        sd: Any,
    ) -> str:
        """
        Build ``MerchantID;TerminalID;PurchaseTime;OrderID;Currency;TotalAmount;SD;``.

        Missing values keep their slot as an empty string.
        """
        values = (
            self.identity.merchant_id,
            self.identity.terminal_id,
            purchase_time,
            order_id,
            currency,
            total_amount,
            sd,
        )
        return "".join(_text(value) + FIELD_SEPARATOR for value in values)

    def sign(
        self,
        *,
        purchase_time: Any,
        order_id: Any,
        currency: Any,
        total_amount: Any,
        sd: Any,
    ) -> str:
        """Return the base64 encoded SHA1withRSA signature of the request fields."""
        key = _import_key(self.private_key, passphrase=self._passphrase, purpose="merchant private")
        if not key.has_private():
            raise KeyUnavailable("Merchant key does not contain a private component")

        payload = self.signing_payload(
            purchase_time=purchase_time,
            order_id=order_id,
            currency=currency,
            total_amount=total_amount,
            sd=sd,
        )
        digest = SHA1.new(payload.encode("utf-8"))
        signature = pkcs1_15.new(key).sign(digest)
        return base64.b64encode(signature).decode("ascii")

    @staticmethod
    def verification_payload(fields: Mapping[str, Any]) -> str:
        """
        Join the present, non-empty notification fields in gateway order.
        """
        # A value of "0" is kept on purpose: only missing or empty-string
        # values are skipped. Changing this alters the verified payload.
        collected = [
            _text(fields.get(name))
            for name in VERIFICATION_FIELDS
            if _text(fields.get(name)) != ""
        ]
        return FIELD_SEPARATOR.join(collected) + FIELD_SEPARATOR

    def verify(self, fields: Mapping[str, Any]) -> bool:
        raw_signature = _text(fields.get("Signature")).strip()
        if not raw_signature:
            raise MalformedPayload("Notification does not carry a Signature")
        try:
            signature = base64.b64decode(raw_signature, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise MalformedPayload("Notification Signature is not valid base64") from exc

        key = _import_key(self.gateway_key, purpose="gateway public")
        digest = SHA1.new(self.verification_payload(fields).encode("utf-8"))
        try:
            pkcs1_15.new(key).verify(digest, signature)
        except (ValueError, TypeError):
            logging.warning(
                "Signature mismatch for notification OrderID=%s XID=%s",
                fields.get("OrderID"),
                fields.get("XID"),
            )
            return False
        return True
