"""
Buyer-side helpers: sign ``exact`` payments and (de)serialize ``X-PAYMENT``.
"""

from __future__ import annotations

import base64
import binascii
import json
import secrets
import time
from typing import Any, Dict, Mapping, Optional

from eth_account import Account
from eth_account.messages import encode_typed_data
from hexbytes import HexBytes

__all__ = [
    "build_authorization_payload",
    "build_payment_payload",
    "decode_payment_header",
    "encode_payment_header",
]


def build_authorization_payload(
    requirements: Mapping[str, Any],
    *,
    payer_private_key: str,
    chain_id: int,
    backdate_seconds: int = 600,
    now: Optional[int] = None,
    nonce: Optional[bytes] = None,
) -> Dict[str, Any]:
    """
    Sign an ERC-3009 ``TransferWithAuthorization`` for ``requirements``.

    ``requirements`` is the wire form (camelCase keys) taken from a 402
    ``accepts`` entry; its ``extra`` carries the token's EIP-712 domain.
    """
    now = int(time.time()) if now is None else now
    nonce_bytes = nonce if nonce is not None else secrets.token_bytes(32)
    valid_after = now - backdate_seconds
    valid_before = now + int(requirements["maxTimeoutSeconds"])
    value = int(requirements["maxAmountRequired"])
    extra = requirements.get("extra") or {}

    account = Account.from_key(payer_private_key)
    message = {
        "from": account.address,
        "to": requirements["payTo"],
        "value": value,
        "validAfter": valid_after,
        "validBefore": valid_before,
        "nonce": HexBytes(nonce_bytes),
    }
    typed_data = {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            "TransferWithAuthorization": [
                {"name": "from", "type": "address"},
                {"name": "to", "type": "address"},
                {"name": "value", "type": "uint256"},
                {"name": "validAfter", "type": "uint256"},
                {"name": "validBefore", "type": "uint256"},
                {"name": "nonce", "type": "bytes32"},
            ],
        },
        "primaryType": "TransferWithAuthorization",
        "domain": {
            "name": extra.get("name", "USDC"),
            "version": extra.get("version", "2"),
            "chainId": chain_id,
            "verifyingContract": requirements["asset"],
        },
        "message": message,
    }

    signable = encode_typed_data(full_message=typed_data)
    signature = account.sign_message(signable).signature
    signature_hex = signature.hex()

    return {
        "signature": signature_hex if signature_hex.startswith("0x") else "0x" + signature_hex,
        "authorization": {
            "from": account.address,
            "to": requirements["payTo"],
            "value": str(value),
            "validAfter": str(valid_after),
            "validBefore": str(valid_before),
            "nonce": "0x" + nonce_bytes.hex(),
        },
    }


def build_payment_payload(
    requirements: Mapping[str, Any],
    *,
    payer_private_key: str,
    chain_id: int,
    backdate_seconds: int = 600,
    now: Optional[int] = None,
    nonce: Optional[bytes] = None,
) -> Dict[str, Any]:
    return {
        "x402Version": 1,
        "scheme": requirements["scheme"],
        "network": requirements["network"],
        "payload": build_authorization_payload(
            requirements,
            payer_private_key=payer_private_key,
            chain_id=chain_id,
            backdate_seconds=backdate_seconds,
            now=now,
            nonce=nonce,
        ),
    }


def encode_payment_header(payload: Mapping[str, Any]) -> str:
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_payment_header(header: str) -> Dict[str, Any]:
    """Inverse of :func:`encode_payment_header`; raises ``ValueError`` on garbage."""
    try:
        decoded = json.loads(base64.b64decode(header, validate=True))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError("Malformed X-PAYMENT header") from exc
    if not isinstance(decoded, dict):
        raise ValueError("X-PAYMENT header must encode a JSON object")
    return decoded
