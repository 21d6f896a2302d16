from unittest.mock import Mock

import pytest
import requests

from conftest import PAY_TO, TEST_PAYER_ADDRESS, TEST_PRIVATE_KEY, make_response
from x402_quotes.api import create_buyer
from x402_quotes.core.issuer import Quote
from x402_quotes.core.payloads import decode_payment_header

NOMINAL = {
    "scheme": "exact",
    "network": "base-sepolia",
    "maxAmountRequired": "10000",
    "resource": "https://localhost:3001/resource",
    "description": "",
    "mimeType": "application/json",
    "outputSchema": None,
    "payTo": PAY_TO,
    "maxTimeoutSeconds": 300,
    "asset": "0x036CbD53842c5426634e7929541eC2318f3dCF7e",
    "extra": {"name": "USDC", "version": "2"},
}


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def buyer(session):
    return create_buyer(
        env_file=None,
        base={},
        payer_private_key=TEST_PRIVATE_KEY,
        server_url="http://quotes.local",
        client_id="c1",
        session=session,
    )


def test_request_quote(buyer, session):
    session.post.return_value = make_response(200, {"quote_id": "q1", "amount": "0.03"})

    quote = buyer.request_quote(3)

    assert quote == Quote("q1", "0.03")
    args, kwargs = session.post.call_args
    assert args[0] == "http://quotes.local/quote"
    assert kwargs["json"] == {"number_of_files": 3}
    assert kwargs["headers"] == {"X-Client-Id": "c1"}


def test_request_quote_failure(buyer, session):
    session.post.return_value = make_response(422, {"detail": "bad"})
    with pytest.raises(RuntimeError, match="422"):
        buyer.request_quote(0)


def test_buy_signs_quoted_amount(buyer, session):
    session.post.return_value = make_response(200, {"quote_id": "q1", "amount": "0.03"})
    session.get.side_effect = [
        make_response(402, {"x402Version": 1, "accepts": [NOMINAL]}),
        make_response(200, {"ok": True}),
    ]

    response = buyer.buy(3, now=1_000, nonce=b"\x00" * 32)

    assert response.status_code == 200
    first, second = session.get.call_args_list
    assert "headers" not in first.kwargs
    headers = second.kwargs["headers"]
    assert headers["X-Quote-Id"] == "q1"
    assert headers["X-Client-Id"] == "c1"
    payment = decode_payment_header(headers["X-PAYMENT"])
    authorization = payment["payload"]["authorization"]
    assert authorization["value"] == "30000"
    assert authorization["from"] == TEST_PAYER_ADDRESS
    assert authorization["to"] == PAY_TO
    assert payment["network"] == "base-sepolia"


def test_nominal_requirements_expects_402(buyer, session):
    session.get.return_value = make_response(200, {"ok": True})
    with pytest.raises(RuntimeError, match="Expected 402"):
        buyer.nominal_requirements()


def test_pay_requires_exact_scheme(buyer):
    with pytest.raises(RuntimeError, match="exact"):
        buyer.pay(Quote("q1", "0.03"), [dict(NOMINAL, scheme="upto")])


def test_create_buyer_rejects_mixed_arguments(buyer):
    with pytest.raises(ValueError):
        create_buyer(config=buyer.config, client_id="c2")
