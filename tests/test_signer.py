from __future__ import annotations

import base64
from pathlib import Path

import pytest
from Crypto.Hash import SHA1
from Crypto.PublicKey import RSA
from Crypto.Signature import pkcs1_15

from upc_payments.core.errors import ConfigError, KeyUnavailable, MalformedPayload
from upc_payments.core.keys import FileKeySource, MemoryKeySource
from upc_payments.core.signer import MerchantIdentity, Signer


def _request_kwargs() -> dict[str, str]:
    return {
        "purchase_time": "230101120000",
        "order_id": "1001",
        "currency": "980",
        "total_amount": "1050",
        "sd": "55",
    }


def test_signing_payload_matches_protocol_order(merchant_key: RSA.RsaKey) -> None:
    signer = Signer(
        MerchantIdentity(merchant_id="merchantId", terminal_id="terminalId"),
        MemoryKeySource(merchant_key.export_key()),
        MemoryKeySource(b""),
    )
    assert signer.signing_payload(**_request_kwargs()) == (
        "merchantId;terminalId;230101120000;1001;980;1050;55;"
    )


def test_signing_payload_keeps_empty_slots(signer: Signer) -> None:
    payload = signer.signing_payload(
        purchase_time=None,
        order_id="1001",
        currency="980",
        total_amount=1050,
        sd="",
    )
    assert payload == "1752256;E7880056;;1001;980;1050;;"


def test_sign_produces_sha1_rsa_signature(signer: Signer, merchant_key: RSA.RsaKey) -> None:
    signature = signer.sign(**_request_kwargs())

    payload = signer.signing_payload(**_request_kwargs()).encode("utf-8")
    pkcs1_15.new(merchant_key.publickey()).verify(SHA1.new(payload), base64.b64decode(signature))


def test_sign_is_deterministic(signer: Signer) -> None:
    assert signer.sign(**_request_kwargs()) == signer.sign(**_request_kwargs())


def test_sign_without_private_key_path(identity: MerchantIdentity) -> None:
    signer = Signer(identity, FileKeySource(""), FileKeySource(""))
    with pytest.raises(KeyUnavailable):
        signer.sign(**_request_kwargs())


def test_sign_with_unreadable_key_file(identity: MerchantIdentity, tmp_path: Path) -> None:
    signer = Signer(identity, FileKeySource(tmp_path / "missing.pem"), FileKeySource(""))
    with pytest.raises(KeyUnavailable):
        signer.sign(**_request_kwargs())


def test_sign_with_garbage_key(identity: MerchantIdentity) -> None:
    signer = Signer(identity, MemoryKeySource("not a key"), MemoryKeySource(""))
    with pytest.raises(KeyUnavailable):
        signer.sign(**_request_kwargs())


def test_sign_with_public_key_only(identity: MerchantIdentity, merchant_key: RSA.RsaKey) -> None:
    signer = Signer(
        identity,
        MemoryKeySource(merchant_key.publickey().export_key()),
        MemoryKeySource(""),
    )
    with pytest.raises(KeyUnavailable):
        signer.sign(**_request_kwargs())


def test_sign_with_encrypted_private_key(identity: MerchantIdentity, merchant_key: RSA.RsaKey) -> None:
    encrypted = merchant_key.export_key(passphrase="s3cret", pkcs=8, protection="scryptAndAES128-CBC")
    signer = Signer(
        identity,
        MemoryKeySource(encrypted),
        MemoryKeySource(""),
        private_key_passphrase="s3cret",
    )
    assert signer.sign(**_request_kwargs())


def test_identity_requires_values() -> None:
    with pytest.raises(ConfigError):
        MerchantIdentity(merchant_id="", terminal_id="E7880056")
    with pytest.raises(ConfigError):
        MerchantIdentity(merchant_id="1752256", terminal_id=" ")


def test_verification_payload_skips_absent_fields() -> None:
    fields = {
        "MerchantID": "1752256",
        "TerminalID": "E7880056",
        "PurchaseTime": "230101120000",
        "OrderID": "1001",
        "XID": "51/10/B8/27/04",
        "Currency": "980",
        "TotalAmount": "1050",
        "SD": "",
        "TranCode": "000",
        "Rrn": "302112345678",
    }
    assert Signer.verification_payload(fields) == (
        "1752256;E7880056;230101120000;1001;51/10/B8/27/04;980;1050;000;"
    )


def test_verification_payload_ignores_comma_key() -> None:
    fields = {"MerchantID": "1", "OrderID,Delay": "1001", "TranCode": "000"}
    assert Signer.verification_payload(fields) == "1;000;"


def test_verify_accepts_gateway_signature(signer: Signer, gateway_sign, notification_fields) -> None:
    assert signer.verify(gateway_sign(notification_fields)) is True


def test_verify_rejects_altered_signature(signer: Signer, gateway_sign, notification_fields) -> None:
    signed = gateway_sign(notification_fields)
    first = signed["Signature"][0]
    signed["Signature"] = ("B" if first == "A" else "A") + signed["Signature"][1:]

    assert signer.verify(signed) is False


def test_verify_rejects_tampered_tran_code(signer: Signer, gateway_sign, notification_fields) -> None:
    signed = gateway_sign(notification_fields)
    signed["TranCode"] = "105"

    assert signer.verify(signed) is False


def test_verify_rejects_merchant_signed_request(
    identity: MerchantIdentity,
    merchant_key: RSA.RsaKey,
) -> None:
    # outbound and inbound conventions differ, so a request never verifies as a notification
    signer = Signer(
        identity,
        MemoryKeySource(merchant_key.export_key()),
        MemoryKeySource(merchant_key.publickey().export_key()),
    )
    fields = {
        "MerchantID": identity.merchant_id,
        "TerminalId": identity.terminal_id,
        "PurchaseTime": "230101120000",
        "OrderID": "1001",
        "Currency": "980",
        "TotalAmount": "1050",
        "SD": "55",
    }
    fields["Signature"] = signer.sign(**_request_kwargs())

    assert signer.verify(fields) is False


def test_verify_requires_signature(signer: Signer, notification_fields) -> None:
    with pytest.raises(MalformedPayload):
        signer.verify(notification_fields)


def test_verify_rejects_invalid_base64(signer: Signer, notification_fields) -> None:
    notification_fields["Signature"] = "%%%not-base64%%%"
    with pytest.raises(MalformedPayload):
        signer.verify(notification_fields)


def test_verify_without_gateway_key(identity: MerchantIdentity, gateway_sign, notification_fields) -> None:
    signer = Signer(identity, FileKeySource(""), FileKeySource(""))
    with pytest.raises(KeyUnavailable):
        signer.verify(gateway_sign(notification_fields))


def test_verification_payload_keeps_zero_values() -> None:
    fields = {"MerchantID": "1", "SD": "0", "TranCode": "0", "ApprovalCode": ""}
    assert Signer.verification_payload(fields) == "1;0;0;"
