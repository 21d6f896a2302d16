"""
Core primitives behind quote-gated x402 payments.
"""

from .amounts import InvalidAmount, parse_money_amount, to_base_units
from .buyer import QuoteBuyer
from .config import (
    BuyerConfig,
    ConfigError,
    QuoteParameters,
    ServerConfig,
    build_environment,
    load_buyer_config,
    load_server_config,
)
from .facilitator import (
    FacilitatorClient,
    FacilitatorError,
    SettlementResult,
    VerifyResult,
)
from .issuer import Quote, QuoteIssuer
from .payloads import (
    build_authorization_payload,
    build_payment_payload,
    decode_payment_header,
    encode_payment_header,
)
from .pricing import UnitPricing
from .reaper import ExpiryReaper
from .requirements import PaymentRequirements, PaymentRequirementsTemplate
from .resolver import (
    FinalizedRequirements,
    PaymentRequired,
    QuoteRequirementsResolver,
    RequirementsResolver,
    Resolution,
)
from .store import (
    DuplicateQuoteId,
    QuoteRecord,
    QuoteRejected,
    QuoteStore,
    RejectionReason,
)

__all__ = [
    "BuyerConfig",
    "ConfigError",
    "DuplicateQuoteId",
    "ExpiryReaper",
    "FacilitatorClient",
    "FacilitatorError",
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
    "QuoteStore",
    "RejectionReason",
    "RequirementsResolver",
    "Resolution",
    "ServerConfig",
    "SettlementResult",
    "UnitPricing",
    "VerifyResult",
    "build_authorization_payload",
    "build_environment",
    "build_payment_payload",
    "decode_payment_header",
    "encode_payment_header",
    "load_buyer_config",
    "load_server_config",
    "parse_money_amount",
    "to_base_units",
]
