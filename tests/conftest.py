from __future__ import annotations

import base64
from pathlib import Path
from typing import Callable, Dict, Mapping

import pytest
from Crypto.Hash import SHA1
from Crypto.PublicKey import RSA
from Crypto.Signature import pkcs1_15

from upc_payments.core.config import GatewayConfig
from upc_payments.core.keys import MemoryKeySource
from upc_payments.core.signer import MerchantIdentity, Signer

MERCHANT_ID = "1752256"
TERMINAL_ID = "E7880056"


@pytest.fixture(scope="session")
def merchant_key() -> RSA.RsaKey:
    return RSA.generate(2048)


@pytest.fixture(scope="session")
def gateway_key() -> RSA.RsaKey:
    return RSA.generate(2048)


@pytest.fixture()
def identity() -> MerchantIdentity:
    return MerchantIdentity(merchant_id=MERCHANT_ID, terminal_id=TERMINAL_ID)


@pytest.fixture()
def signer(identity: MerchantIdentity, merchant_key: RSA.RsaKey, gateway_key: RSA.RsaKey) -> Signer:
    return Signer(
        identity,
        MemoryKeySource(merchant_key.export_key()),
        MemoryKeySource(gateway_key.publickey().export_key()),
    )


@pytest.fixture()
def key_files(tmp_path: Path, merchant_key: RSA.RsaKey, gateway_key: RSA.RsaKey) -> Dict[str, str]:
    private_path = tmp_path / "merchant.pem"
    private_path.write_bytes(merchant_key.export_key())
    gateway_path = tmp_path / "gateway.pub"
    gateway_path.write_bytes(gateway_key.publickey().export_key())
    return {"private": str(private_path), "gateway": str(gateway_path)}


@pytest.fixture()
def config(key_files: Dict[str, str]) -> GatewayConfig:
    return GatewayConfig(
        merchant_id=MERCHANT_ID,
        terminal_id=TERMINAL_ID,
        private_key_path=key_files["private"],
        gateway_key_path=key_files["gateway"],
        test_mode=True,
    )


@pytest.fixture()
def gateway_sign(gateway_key: RSA.RsaKey) -> Callable[[Mapping[str, str]], Dict[str, str]]:
    """Sign notification fields the way the gateway does and attach the Signature."""

    def _sign(fields: Mapping[str, str]) -> Dict[str, str]:
        payload = Signer.verification_payload(fields)
        signature = pkcs1_15.new(gateway_key).sign(SHA1.new(payload.encode("utf-8")))
        signed = dict(fields)
        signed["Signature"] = base64.b64encode(signature).decode("ascii")
        return signed

    return _sign


@pytest.fixture()
def notification_fields() -> Dict[str, str]:
    return {
        "MerchantID": MERCHANT_ID,
        "TerminalID": TERMINAL_ID,
        "PurchaseTime": "230101120000",
        "OrderID": "1001",
        "XID": "51/10/B8/27/04",
        "Currency": "980",
        "TotalAmount": "1050",
        "SD": "55",
        "TranCode": "000",
        "ApprovalCode": "382749",
        "Rrn": "302112345678",
        "ProxyPan": "414939******6178",
    }
