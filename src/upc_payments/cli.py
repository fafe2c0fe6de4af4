"""
Command-line interface for exercising the UPC gateway adapter.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable, Sequence, Tuple

from .api import create_gateway_client
from .core.config import load_gateway_config
from .core.errors import UpcError
from .core.payloads import PaymentRequest


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _key_value(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Values must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Key must not be empty")
    return key, val


def _collect(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    collected: dict[str, str] = {}
    for key, value in pairs:
        collected[key] = value
    return collected


def _add_request_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--order-id", required=True, help="Merchant order identifier (OrderID)")
    parser.add_argument("--amount", required=True, help="Amount in major units, e.g. 10.50")
    parser.add_argument("--payment-id", default="", help="Secondary descriptor sent as SD")
    parser.add_argument("--currency", help="ISO 4217 numeric currency (default: from config)")
    parser.add_argument("--purchase-time", help="Fixed PurchaseTime in yyMMddHHmmss")
    parser.add_argument(
        "--field",
        action="append",
        type=_key_value,
        metavar="KEY=VALUE",
        default=None,
        help="Extra gateway field to include in the request",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="upc-payments",
        description="Build, submit and acknowledge UPC gateway payments",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing UPC_* settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_key_value,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    form = commands.add_parser("form", help="Print the signed form fields as JSON")
    _add_request_arguments(form)

    resolve = commands.add_parser("resolve", help="Submit the request and print the redirect URL")
    _add_request_arguments(resolve)

    ack = commands.add_parser("ack", help="Verify a notification and print the acknowledgment")
    ack.add_argument(
        "--field",
        action="append",
        type=_key_value,
        metavar="KEY=VALUE",
        default=None,
        help="Notification field as received from the gateway",
    )
    return parser


def _payment_request(args: argparse.Namespace) -> PaymentRequest:
    return PaymentRequest(
        order_id=args.order_id,
        amount=args.amount,
        payment_id=args.payment_id,
        currency=args.currency,
        purchase_time=args.purchase_time,
        extra_fields=_collect(args.field or ()),
    )


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect(args.set or ())

    try:
        config = load_gateway_config(env_file=args.env_file, overrides=overrides)
    except (UpcError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = create_gateway_client(config=config)

    try:
        if args.command == "form":
            form = client.build_payment_form(_payment_request(args))
            print(json.dumps({"action_url": form.action_url, "fields": form.fields}, indent=2))
            return 0

        if args.command == "resolve":
            print(client.resolve_payment_url(_payment_request(args)))
            return 0

        result, acknowledgment = client.handle_notification(_collect(args.field or ()))
    except (UpcError, ValueError) as exc:
        logging.error("%s failed: %s", args.command, exc)
        return 1

    sys.stdout.write(acknowledgment)
    if not result.is_success:
        logging.error("Notification not approved: %s %s", result.status.value, result.reason)
        return 1
    return 0


def main() -> None:
    sys.exit(run_cli())
