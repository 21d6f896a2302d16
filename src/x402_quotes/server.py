"""
FastAPI application exposing the quote endpoint and a quote-priced resource.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .api import QuoteService, create_quote_service
from .core.resolver import UNKNOWN_CLIENT_ID
from .core.store import DuplicateQuoteId
from .middleware import X402Middleware

__all__ = ["QuoteRequest", "create_app"]


class QuoteRequest(BaseModel):
    # Price input, e.g. how many files the caller wants processed.
    number_of_files: int = Field(ge=1, le=1_000_000)


def create_app(service: Optional[QuoteService] = None) -> FastAPI:
    """Build the app; the reaper runs for as long as the app's lifespan."""
    service = service or create_quote_service()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        service.start()
        try:
            yield
        finally:
            service.stop()

    app = FastAPI(title="x402 quotes", version="0.1.0", lifespan=lifespan)
    app.state.quote_service = service
    app.add_middleware(
        X402Middleware,
        routes={"/resource": service.templates},
        resolver=service.resolver,
        facilitator=service.facilitator,
    )

    @app.exception_handler(DuplicateQuoteId)
    async def _duplicate_quote_id(request: Request, exc: DuplicateQuoteId) -> JSONResponse:
        logging.error("Could not allocate a unique quote id: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.post("/quote")
    def quote(
        body: QuoteRequest,
        x_client_id: Optional[str] = Header(default=None),
    ) -> Dict[str, str]:
        # The owner is whatever the caller claims; see CLIENT_ID_HEADER.
        owner_id = (x_client_id or "").strip() or UNKNOWN_CLIENT_ID
        return service.quote(body.number_of_files, owner_id).to_dict()

    @app.get("/resource")
    def resource() -> Dict[str, Any]:
        return {"ok": True}

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok", "quotes": len(service.store)}

    return app
