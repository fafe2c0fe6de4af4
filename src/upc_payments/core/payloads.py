"""
Helpers for constructing the signed field set posted to the UPC gateway.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Union

from .signer import Signer

__all__ = [
    "PaymentRequest",
    "PURCHASE_TIME_FORMAT",
    "PROTOCOL_VERSION",
    "RESERVED_FIELDS",
    "build_form_fields",
    "format_purchase_time",
    "to_minor_units",
]

PURCHASE_TIME_FORMAT = "%y%m%d%H%M%S"
PROTOCOL_VERSION = 1
MINOR_UNIT_DECIMALS = 2

RESERVED_FIELDS = frozenset(
    {
        "MerchantID",
        "TerminalId",
        "OrderID",
        "Currency",
        "TotalAmount",
        "SD",
        "PurchaseTime",
        "Signature",
    }
)
_RESERVED_FOLDED = frozenset(name.casefold() for name in RESERVED_FIELDS)


def to_minor_units(amount: Union[Decimal, str, int, float]) -> int:
    """
    Convert a major-unit amount (``10.50``) to gateway minor units (``1050``).
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValueError(f"Amount '{amount}' is not a valid decimal number") from exc
    if not value.is_finite():
        raise ValueError(f"Amount '{amount}' is not a finite number")

    try:
        scaled = value * (Decimal(10) ** MINOR_UNIT_DECIMALS)
        integral = scaled.to_integral_exact()
    except InvalidOperation as exc:
        raise ValueError(f"Amount {amount} cannot be represented in minor units") from exc
    if integral != scaled:
        raise ValueError(f"Amount {amount} cannot be represented in minor units")

    as_int = int(integral)
    if as_int <= 0:
        raise ValueError("Payment amount must be greater than zero")
    return as_int


def format_purchase_time(value: Union[datetime, str, None] = None) -> str:
    if value is None:
        value = datetime.now()
    if isinstance(value, datetime):
        return value.strftime(PURCHASE_TIME_FORMAT)
    message = f"PurchaseTime '{value}' does not match yyMMddHHmmss"
    # strptime alone accepts fields that are not zero-padded
    if len(value) != 12 or not (value.isascii() and value.isdigit()):
        raise ValueError(message)
    try:
        datetime.strptime(value, PURCHASE_TIME_FORMAT)
    except ValueError as exc:
        raise ValueError(message) from exc
    return value


@dataclass(frozen=True)
class PaymentRequest:
    """
    One outbound payment.

    ``amount`` is in major units; it is sent as ``TotalAmount`` in minor
    units. ``payment_id`` travels in the ``SD`` field.
    """

    order_id: str
    amount: Union[Decimal, str, int, float]
    payment_id: str = ""
    currency: Optional[str] = None
    purchase_time: Union[datetime, str, None] = None
    extra_fields: Mapping[str, Any] = field(default_factory=dict)

    @property
    def amount_minor_units(self) -> int:
        return to_minor_units(self.amount)


def _merge_extras(fields: Dict[str, Any], extras: Mapping[str, Any]) -> None:
    for key, value in extras.items():
        if str(key).casefold() in _RESERVED_FOLDED:
            logging.warning("Ignoring extra field %s: it is reserved by the protocol", key)
            continue
        fields[key] = value


def build_form_fields(
    signer: Signer,
    request: PaymentRequest,
    *,
    default_currency: str = "980",
    extra_fields: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, str]:
    """
    Build the ordered, signed field map for one payment request.

    ``extra_fields`` (configuration level) are applied before
    ``request.extra_fields``; both can replace non-reserved defaults such as
    ``Version``. ``Signature`` is always computed last.
    """
    purchase_time = format_purchase_time(
        request.purchase_time if request.purchase_time is not None else now
    )
    currency = request.currency or default_currency
    total_amount = request.amount_minor_units

    fields: Dict[str, Any] = {
        "MerchantID": signer.identity.merchant_id,
        "TerminalId": signer.identity.terminal_id,
        "Version": PROTOCOL_VERSION,
        "OrderID": request.order_id,
        "Currency": currency,
        "TotalAmount": total_amount,
        "SD": request.payment_id,
        "PurchaseTime": purchase_time,
    }
    _merge_extras(fields, extra_fields or {})
    _merge_extras(fields, request.extra_fields)

    fields["Signature"] = signer.sign(
        purchase_time=purchase_time,
        order_id=request.order_id,
        currency=currency,
        total_amount=total_amount,
        sd=request.payment_id,
    )
    return {key: "" if value is None else str(value) for key, value in fields.items()}
