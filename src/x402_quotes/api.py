"""
Public, high-level helpers for wiring the quote service and the buyer client.
"""

from __future__ import annotations

import time
from typing import Callable, Mapping, Optional, Sequence, Tuple

import requests

from .core.buyer import QuoteBuyer
from .core.config import (
    BuyerConfig,
    ConfigError,
    QuoteParameters,
    ServerConfig,
    load_buyer_config,
    load_server_config,
)
from .core.facilitator import FacilitatorClient
from .core.issuer import Quote, QuoteIssuer
from .core.pricing import UnitPricing
from .core.reaper import ExpiryReaper
from .core.requirements import PaymentRequirementsTemplate
from .core.resolver import QuoteRequirementsResolver
from .core.store import QuoteStore

__all__ = [
    "ConfigError",
    "QuoteService",
    "create_buyer",
    "create_quote_service",
]


class QuoteService:
    """
    One process-wide set of quote components sharing a single store.

    The reaper is owned by whoever calls :meth:`start` / :meth:`stop`; the
    FastAPI app ties both to its lifespan.
    """

    def __init__(
        self,
        config: ServerConfig,
        *,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.store = QuoteStore()
        self.pricing = UnitPricing(config.unit_price)
        self.issuer = QuoteIssuer(
            self.store, ttl_seconds=config.quote_ttl_seconds, clock=clock
        )
        self.resolver = QuoteRequirementsResolver(self.store, config.base_url, clock=clock)
        self.reaper = ExpiryReaper(
            self.store, interval_seconds=config.reaper_interval_seconds, clock=clock
        )
        self.facilitator = FacilitatorClient(config.facilitator_url, session=session)
        self.templates: Tuple[PaymentRequirementsTemplate, ...] = (
            config.requirements_template(),
        )

    def quote(self, number_of_files: int, owner_id: str) -> Quote:
        return self.issuer.issue(self.pricing.price(number_of_files), owner_id)

    def start(self) -> None:
        self.reaper.start()

    def stop(self) -> None:
        self.reaper.stop(timeout=5)


def create_quote_service(
    *,
    config: Optional[ServerConfig] = None,
    session: Optional[requests.Session] = None,
    clock: Callable[[], float] = time.time,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[QuoteParameters] = None,
) -> QuoteService:
    """
    Construct a :class:`QuoteService`.

    Callers can either supply a ready-made :class:`ServerConfig` or let the
    helper assemble one from environment data.
    """
    if config is not None:
        if any(item for item in (overrides, base, parameters)):
            raise ValueError(
                "Provide either a pre-built ServerConfig or environment parameters, not both."
            )
        cfg = config
    else:
        cfg = load_server_config(
            env_file=env_file, overrides=overrides, base=base, parameters=parameters
        )
    return QuoteService(cfg, session=session, clock=clock)


def create_buyer(
    *,
    config: Optional[BuyerConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    payer_private_key: Optional[str] = None,
    server_url: Optional[str] = None,
    client_id: Optional[str] = None,
) -> QuoteBuyer:
    if config is not None:
        extras: Sequence[object] = (
            overrides,
            base,
            payer_private_key,
            server_url,
            client_id,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built BuyerConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_buyer_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            payer_private_key=payer_private_key,
            server_url=server_url,
            client_id=client_id,
        )
    return QuoteBuyer(cfg, session=session)
