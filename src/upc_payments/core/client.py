"""
HTTP client and notification entry points for the UPC gateway.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from .config import GatewayConfig
from .errors import GatewayUnreachable, MalformedPayload, NoRedirectIssued
from .notifications import (
    NotificationAction,
    NotificationPayload,
    NotificationResult,
    map_tran_code,
    render_acknowledgment,
)
from .payloads import PaymentRequest, build_form_fields
from .signer import Signer

__all__ = [
    "GatewayClient",
    "PaymentForm",
    "resolve_payment_url",
]


@dataclass(frozen=True)
class PaymentForm:
    """Target URL and fields for a browser form POST to the gateway."""

    action_url: str
    fields: Dict[str, str]

    @property
    def method(self) -> str:
        return "POST"


def resolve_payment_url(
    session: requests.Session,
    config: GatewayConfig,
    fields: Mapping[str, str],
) -> str:
    """
    POST signed ``fields`` and return the ``Location`` of the gateway's reply.

    Redirects are not followed: only the first response is inspected.
    """
    url = config.gateway_url
    logging.info("Requesting payment redirect from %s for OrderID=%s", url, fields.get("OrderID"))
    try:
        response = session.post(
            url,
            data=dict(fields),
            headers={
                "User-Agent": config.user_agent,
                "Content-Type": "application/x-www-form-urlencoded",
                # requests drops headers set to None when merging with the session
                "Expect": None,
            },
            allow_redirects=False,
            timeout=config.timeout_seconds,
        )
    except requests.RequestException as exc:
        raise GatewayUnreachable(f"Failed to reach payment gateway at {url}: {exc}") from exc

    location = (response.headers.get("Location") or "").strip()
    if not location:
        raise NoRedirectIssued(
            f"Gateway responded with {response.status_code} without a redirect",
            status_code=response.status_code,
        )
    logging.info("Gateway issued redirect (status %s)", response.status_code)
    return location


class GatewayClient:
    """
    Builds outbound payment requests and processes inbound notifications
    for one merchant terminal.
    """

    def __init__(
        self,
        config: GatewayConfig,
        *,
        signer: Optional[Signer] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.signer = signer or config.build_signer()
        self.session = session or requests.Session()

    @property
    def gateway_url(self) -> str:
        return self.config.gateway_url

    def build_fields(
        self,
        request: PaymentRequest,
        *,
        now: Optional[datetime] = None,
    ) -> Dict[str, str]:
        return build_form_fields(
            self.signer,
            request,
            default_currency=self.config.currency,
            extra_fields=self.config.extra_fields,
            now=now,
        )

    def build_payment_form(
        self,
        request: PaymentRequest,
        *,
        now: Optional[datetime] = None,
    ) -> PaymentForm:
        return PaymentForm(action_url=self.gateway_url, fields=self.build_fields(request, now=now))

    def resolve_payment_url(
        self,
        request: PaymentRequest,
        *,
        now: Optional[datetime] = None,
    ) -> str:
        fields = self.build_fields(request, now=now)
        return resolve_payment_url(self.session, self.config, fields)

    def verify(self, fields: Mapping[str, Any]) -> bool:
        return self.signer.verify(fields)

    def handle_notification(
        self,
        fields: Mapping[str, Any],
        outcome_mapping: Optional[Mapping[int, NotificationAction]] = None,
    ) -> Tuple[NotificationResult, str]:
        """
        Verify a notification and return ``(result, acknowledgment_text)``.

        A payload that is malformed or fails signature verification yields a
        ``NotificationStatus.INVALID`` result and a ``reverse`` acknowledgment.
        :class:`KeyUnavailable` is not caught.
        """
        try:
            payload = NotificationPayload.from_mapping(fields)
            verified = self.signer.verify(fields)
        except MalformedPayload as exc:
            logging.warning("Rejecting malformed notification: %s", exc)
            result = NotificationResult.rejected(fields, str(exc))
            return result, self.notification_response(fields, result.action)

        if not verified:
            result = NotificationResult.rejected(fields, "signature verification failed")
            return result, self.notification_response(fields, result.action)

        action = map_tran_code(payload.tran_code, outcome_mapping)
        result = NotificationResult.from_payload(payload, action)
        logging.info(
            "Notification OrderID=%s XID=%s TranCode=%s -> %s",
            payload.order_id,
            payload.xid,
            payload.tran_code,
            action.value,
        )
        return result, self.notification_response(fields, action)

    def notification_response(
        self,
        fields: Mapping[str, Any],
        action: NotificationAction,
    ) -> str:
        return render_acknowledgment(self.signer.identity, fields, action)

    def check_response(
        self,
        fields: Mapping[str, Any],
        action: NotificationAction,
    ) -> str:
        """The gateway's check request expects the same body as a notification reply."""
        return self.notification_response(fields, action)
