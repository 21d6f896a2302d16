"""
x402 payment gate for FastAPI/Starlette routes.

Asks a :class:`~x402_quotes.core.resolver.RequirementsResolver` which terms
apply to the request, verifies the ``X-PAYMENT`` proof against them with the
facilitator, and settles once the protected route has answered successfully.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from .core.amounts import InvalidAmount
from .core.facilitator import FacilitatorClient, FacilitatorError
from .core.payloads import decode_payment_header
from .core.requirements import PaymentRequirements, PaymentRequirementsTemplate
from .core.resolver import PaymentRequired, RequirementsResolver

__all__ = ["X402Middleware"]

X402_VERSION = 1
PAYMENT_HEADER = "X-PAYMENT"
PAYMENT_RESPONSE_HEADER = "X-PAYMENT-RESPONSE"


def _payment_required(
    accepts: Sequence[PaymentRequirements],
    error: str,
    payer: Optional[str] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "x402Version": X402_VERSION,
        "error": error,
        "accepts": [requirement.to_dict() for requirement in accepts],
    }
    if payer is not None:
        content["payer"] = payer
    return JSONResponse(status_code=402, content=content)


def _server_error() -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def _match_requirement(
    payload: Mapping[str, Any],
    accepts: Sequence[PaymentRequirements],
) -> Optional[PaymentRequirements]:
    for requirement in accepts:
        if (
            requirement.scheme == payload.get("scheme")
            and requirement.network == payload.get("network")
        ):
            return requirement
    return None


class X402Middleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        *,
        routes: Mapping[str, Sequence[PaymentRequirementsTemplate]],
        resolver: RequirementsResolver,
        facilitator: FacilitatorClient,
    ):
        super().__init__(app)
        self.routes = {path: tuple(templates) for path, templates in routes.items()}
        self.resolver = resolver
        self.facilitator = facilitator

    async def dispatch(self, request: Request, call_next) -> Response:
        templates = self.routes.get(request.url.path)
        if templates is None or request.method == "OPTIONS":
            return await call_next(request)

        uri = request.url.path
        if request.url.query:
            uri = f"{uri}?{request.url.query}"

        try:
            resolution = await run_in_threadpool(
                self.resolver.resolve, request.headers, uri, templates
            )
        except InvalidAmount:
            logging.exception("Failed to resolve payment requirements for %s", uri)
            return _server_error()

        if isinstance(resolution, PaymentRequired):
            return _payment_required(resolution.accepts, "X-PAYMENT header is required")
        accepts = resolution.requirements

        header = request.headers.get(PAYMENT_HEADER)
        if not header:
            return _payment_required(accepts, "X-PAYMENT header is required")
        try:
            payload = decode_payment_header(header)
        except ValueError:
            return _payment_required(accepts, "Invalid or malformed payment header")

        requirement = _match_requirement(payload, accepts)
        if requirement is None:
            return _payment_required(
                accepts, "Unable to find matching payment requirements"
            )

        try:
            verification = await run_in_threadpool(
                self.facilitator.verify, payload, requirement
            )
        except FacilitatorError:
            logging.exception("Payment verification failed for %s", uri)
            return JSONResponse(status_code=502, content={"error": "Facilitator unavailable"})
        if not verification.is_valid:
            logging.info(
                "Facilitator rejected payment from %s: %s",
                verification.payer,
                verification.invalid_reason,
            )
            return _payment_required(
                accepts,
                verification.invalid_reason or "Payment verification failed",
                payer=verification.payer,
            )

        response = await call_next(request)
        if response.status_code >= 400:
            return response

        try:
            settlement = await run_in_threadpool(
                self.facilitator.settle, payload, requirement
            )
        except FacilitatorError:
            logging.exception("Payment settlement failed for %s", uri)
            return JSONResponse(status_code=502, content={"error": "Facilitator unavailable"})
        if not settlement.success:
            logging.error("Settlement failed: %s", settlement.raw)
            return _payment_required(accepts, "Settlement failed", payer=verification.payer)

        logging.info(
            "Payment settled on %s. Transaction hash: %s",
            settlement.network,
            settlement.transaction,
        )
        encoded = json.dumps(settlement.raw, separators=(",", ":")).encode("utf-8")
        response.headers[PAYMENT_RESPONSE_HEADER] = base64.b64encode(encoded).decode("ascii")
        return response
