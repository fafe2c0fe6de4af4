"""
Inbound notification handling: outcome mapping, normalized results and the
plain-text acknowledgment the gateway expects in reply.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import MalformedPayload
from .payloads import PURCHASE_TIME_FORMAT
from .signer import MerchantIdentity

__all__ = [
    "DEFAULT_OUTCOME_MAPPING",
    "NotificationAction",
    "NotificationPayload",
    "NotificationResult",
    "NotificationStatus",
    "REQUIRED_NOTIFICATION_FIELDS",
    "map_tran_code",
    "parse_purchase_time",
    "render_acknowledgment",
]

REQUIRED_NOTIFICATION_FIELDS: Tuple[str, ...] = (
    "OrderID",
    "Currency",
    "TotalAmount",
    "XID",
    "PurchaseTime",
    "TranCode",
    "Signature",
)


class NotificationAction(str, enum.Enum):
    APPROVE = "approve"
    REVERSE = "reverse"


class NotificationStatus(str, enum.Enum):
    # INVALID is the terminal "rejected" state: signature or payload check failed.
    INVALID = "invalid"
    APPROVED = "approved"
    REVERSED = "reversed"


DEFAULT_OUTCOME_MAPPING: Mapping[int, NotificationAction] = {0: NotificationAction.APPROVE}


def map_tran_code(
    tran_code: Any,
    mapping: Optional[Mapping[int, NotificationAction]] = None,
) -> NotificationAction:
    """
    Translate a gateway ``TranCode`` into approve/reverse.

    Unknown or non-numeric codes reverse, as does a mapping entry that is
    not an action.
    """
    table = DEFAULT_OUTCOME_MAPPING if mapping is None else mapping
    try:
        code = int(str(tran_code).strip())
    except (TypeError, ValueError):
        return NotificationAction.REVERSE
    try:
        return NotificationAction(table.get(code, NotificationAction.REVERSE))
    except (TypeError, ValueError):
        logging.warning("Outcome mapping for TranCode %s is not an action; reversing", code)
        return NotificationAction.REVERSE


def parse_purchase_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value, PURCHASE_TIME_FORMAT)
    except ValueError:
        return None


def _optional(fields: Mapping[str, Any], name: str) -> Optional[str]:
    value = fields.get(name)
    if value is None or str(value) == "":
        return None
    return str(value)


@dataclass(frozen=True)
class NotificationPayload:
    order_id: str
    currency: str
    total_amount: str
    xid: str
    purchase_time: str
    tran_code: str
    signature: str
    payment_id: Optional[str] = None
    rrn: Optional[str] = None
    proxy_pan: Optional[str] = None
    approval_code: Optional[str] = None
    raw: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, fields: Mapping[str, Any]) -> "NotificationPayload":
        missing = [name for name in REQUIRED_NOTIFICATION_FIELDS if _optional(fields, name) is None]
        if missing:
            raise MalformedPayload(f"Notification is missing fields: {', '.join(missing)}")
        return cls(
            order_id=str(fields["OrderID"]),
            currency=str(fields["Currency"]),
            total_amount=str(fields["TotalAmount"]),
            xid=str(fields["XID"]),
            purchase_time=str(fields["PurchaseTime"]),
            tran_code=str(fields["TranCode"]),
            signature=str(fields["Signature"]),
            payment_id=_optional(fields, "SD"),
            rrn=_optional(fields, "Rrn"),
            proxy_pan=_optional(fields, "ProxyPan"),
            approval_code=_optional(fields, "ApprovalCode"),
            raw={key: "" if value is None else str(value) for key, value in fields.items()},
        )

    @property
    def amount_minor_units(self) -> Optional[int]:
        try:
            return int(self.total_amount)
        except ValueError:
            return None


@dataclass(frozen=True)
class NotificationResult:
    """
    Application-facing view of one notification.

    Only ``APPROVED`` results are authoritative proof of payment; the caller
    still has to deduplicate replays by ``order_id``/``xid``.
    """

    status: NotificationStatus
    action: NotificationAction
    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    transaction_id: Optional[str] = None
    xid: Optional[str] = None
    amount_minor_units: Optional[int] = None
    currency: Optional[str] = None
    card_pan: Optional[str] = None
    approval_code: Optional[str] = None
    tran_code: Optional[str] = None
    purchased_at: Optional[datetime] = None
    reason: str = ""
    raw: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status is NotificationStatus.APPROVED

    @classmethod
    def rejected(cls, fields: Mapping[str, Any], reason: str) -> "NotificationResult":
        return cls(
            status=NotificationStatus.INVALID,
            action=NotificationAction.REVERSE,
            order_id=_optional(fields, "OrderID"),
            xid=_optional(fields, "XID"),
            tran_code=_optional(fields, "TranCode"),
            reason=reason,
            raw={key: "" if value is None else str(value) for key, value in fields.items()},
        )

    @classmethod
    def from_payload(
        cls,
        payload: NotificationPayload,
        action: NotificationAction,
    ) -> "NotificationResult":
        status = (
            NotificationStatus.APPROVED
            if action is NotificationAction.APPROVE
            else NotificationStatus.REVERSED
        )
        return cls(
            status=status,
            action=action,
            order_id=payload.order_id,
            payment_id=payload.payment_id,
            transaction_id=payload.rrn,
            xid=payload.xid,
            amount_minor_units=payload.amount_minor_units,
            currency=payload.currency,
            card_pan=payload.proxy_pan,
            approval_code=payload.approval_code,
            tran_code=payload.tran_code,
            purchased_at=parse_purchase_time(payload.purchase_time),
            raw=payload.raw,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "action": self.action.value,
            "order_id": self.order_id,
            "payment_id": self.payment_id,
            "transaction_id": self.transaction_id,
            "xid": self.xid,
            "amount_minor_units": self.amount_minor_units,
            "currency": self.currency,
            "card_pan": self.card_pan,
            "approval_code": self.approval_code,
            "tran_code": self.tran_code,
            "purchased_at": self.purchased_at.isoformat() if self.purchased_at else None,
            "reason": self.reason,
        }


def render_acknowledgment(
    identity: MerchantIdentity,
    fields: Mapping[str, Any],
    action: NotificationAction,
) -> str:
    """
    Render the newline-terminated ``key=value`` reply body.

    Merchant and terminal come from our own identity; everything else is
    echoed from the inbound notification as received. Line order is fixed.
    """

    def echo(name: str) -> str:
        value = fields.get(name)
        return "" if value is None else str(value)

    lines = [
        ("MerchantID", identity.merchant_id),
        ("TerminalID", identity.terminal_id),
        ("OrderID", echo("OrderID")),
        ("Currency", echo("Currency")),
        ("TotalAmount", echo("TotalAmount")),
        ("XID", echo("XID")),
        ("PurchaseTime", echo("PurchaseTime")),
        ("Response.action", NotificationAction(action).value),
        ("Response.reason", ""),
        ("Response.forwardUrl", ""),
    ]
    return "".join(f"{key}={value}\n" for key, value in lines)
