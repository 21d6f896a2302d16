"""Shared fixtures for the x402 quote tests."""

import json
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest
import requests

from x402_quotes.core.config import ServerConfig, load_server_config
from x402_quotes.core.requirements import PaymentRequirementsTemplate
from x402_quotes.core.store import QuoteStore

# Well-known development key (Hardhat account #0); never funded on a real chain.
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_PAYER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
PAY_TO = "0xBAc675C310721717Cd4A37F6cbeA1F081b1C2a07"
USDC_BASE_SEPOLIA = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"


class FakeClock:
    """Manually advanced clock for deterministic expiry tests."""

    def __init__(self, now: float = 0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_response(status_code: int = 200, payload: Optional[Any] = None, text: str = "") -> Mock:
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.text = text or json.dumps(payload)
    response.headers = {}
    if payload is None:
        response.json.side_effect = json.JSONDecodeError("Expecting value", text, 0)
    else:
        response.json.return_value = payload
    return response


class StubFacilitatorSession:
    """Stands in for ``requests.Session`` in front of the facilitator."""

    def __init__(
        self,
        verify: Optional[Dict[str, Any]] = None,
        settle: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.verify_response = verify if verify is not None else {
            "isValid": True,
            "payer": TEST_PAYER_ADDRESS,
        }
        self.settle_response = settle if settle is not None else {
            "success": True,
            "network": "base-sepolia",
            "transaction": "0xabc123",
            "payer": TEST_PAYER_ADDRESS,
        }
        self.calls: List[Dict[str, Any]] = []

    def post(self, url: str, json: Dict[str, Any], timeout: float) -> Mock:
        self.calls.append({"url": url, "json": json})
        if url.endswith("/verify"):
            return make_response(200, self.verify_response)
        if url.endswith("/settle"):
            return make_response(200, self.settle_response)
        return make_response(404, None, text="not found")

    def bodies(self, endpoint: str) -> List[Dict[str, Any]]:
        return [call["json"] for call in self.calls if call["url"].endswith(endpoint)]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> QuoteStore:
    return QuoteStore()


@pytest.fixture
def template() -> PaymentRequirementsTemplate:
    return PaymentRequirementsTemplate(
        network="base-sepolia",
        max_amount_required="10000",
        pay_to=PAY_TO,
        asset=USDC_BASE_SEPOLIA,
        token_decimals=6,
        description="Quote-priced x402 resource",
        extra={"name": "USDC", "version": "2"},
    )


@pytest.fixture
def server_config() -> ServerConfig:
    return load_server_config(env_file=None, base={})
