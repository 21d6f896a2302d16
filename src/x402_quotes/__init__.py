"""
Public facade for the x402 quote package.

The module re-exports the pieces integrators reach for most so they can
``from x402_quotes import ...`` without navigating the package.
"""

from .api import QuoteService, create_buyer, create_quote_service
from .core import (
    BuyerConfig,
    ConfigError,
    DuplicateQuoteId,
    ExpiryReaper,
    FacilitatorClient,
    FinalizedRequirements,
    InvalidAmount,
    PaymentRequired,
    PaymentRequirements,
    PaymentRequirementsTemplate,
    Quote,
    QuoteBuyer,
    QuoteIssuer,
    QuoteParameters,
    QuoteRecord,
    QuoteRejected,
    QuoteRequirementsResolver,
    QuoteStore,
    RejectionReason,
    RequirementsResolver,
    ServerConfig,
    load_buyer_config,
    load_server_config,
    to_base_units,
)
from .middleware import X402Middleware
from .server import create_app

__all__ = (
    "BuyerConfig",
    "ConfigError",
    "DuplicateQuoteId",
    "ExpiryReaper",
    "FacilitatorClient",
    "FinalizedRequirements",
    "InvalidAmount",
    "PaymentRequired",
    "PaymentRequirements",
    "PaymentRequirementsTemplate",
    "Quote",
    "QuoteBuyer",
    "QuoteIssuer",
    "QuoteParameters",
    "QuoteRecord",
    "QuoteRejected",
    "QuoteRequirementsResolver",
    "QuoteService",
    "QuoteStore",
    "RejectionReason",
    "RequirementsResolver",
    "ServerConfig",
    "X402Middleware",
    "create_app",
    "create_buyer",
    "create_quote_service",
    "load_buyer_config",
    "load_server_config",
    "to_base_units",
)
