"""
Configuration objects for the quote server and the buyer client.

Values come from three layers: the process environment, an optional ``.env``
file (only fills keys the environment does not set), and explicit overrides,
which always win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from eth_account import Account
from eth_utils import is_hex_address, to_checksum_address

from .amounts import InvalidAmount, parse_money_amount, to_base_units
from .issuer import DEFAULT_QUOTE_TTL_SECONDS
from .reaper import DEFAULT_REAPER_INTERVAL_SECONDS
from .requirements import PaymentRequirementsTemplate

__all__ = [
    "BuyerConfig",
    "ConfigError",
    "QuoteParameters",
    "ServerConfig",
    "build_environment",
    "load_buyer_config",
    "load_server_config",
]

_PARAMETER_TO_ENV_KEY = {
    "facilitator_url": "X402_FACILITATOR_URL",
    "base_url": "X402_BASE_URL",
    "pay_to": "X402_PAY_TO",
    "asset_address": "X402_ASSET_ADDRESS",
    "network": "X402_NETWORK",
    "token_decimals": "X402_TOKEN_DECIMALS",
    "nominal_amount": "X402_NOMINAL_AMOUNT",
    "unit_price": "X402_UNIT_PRICE",
    "quote_ttl_seconds": "X402_QUOTE_TTL_SECONDS",
    "reaper_interval_seconds": "X402_REAPER_INTERVAL_SECONDS",
    "host": "X402_HOST",
    "port": "X402_PORT",
}


class ConfigError(Exception):
    """Raised when the supplied configuration is invalid."""


def _read_env_file(path: Path) -> Dict[str, str]:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return {}

    values: Dict[str, str] = {}
    for raw_line in lines:
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        if not sep or line.startswith("#"):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key.strip()] = value
    return values


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Merge ``base`` (default :data:`os.environ`), ``env_file`` and ``overrides``.

    Pass ``env_file=None`` to skip reading a file.
    """
    merged: Dict[str, str] = dict(os.environ if base is None else base)
    if env_file is not None:
        for key, value in _read_env_file(Path(env_file)).items():
            merged.setdefault(key, value)
    if overrides:
        merged.update(overrides)
    return merged


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class QuoteParameters:
    """Keyword-friendly alternative to setting ``X402_*`` variables."""

    facilitator_url: Optional[str] = None
    base_url: Optional[str] = None
    pay_to: Optional[str] = None
    asset_address: Optional[str] = None
    network: Optional[str] = None
    token_decimals: Optional[int | str] = None
    nominal_amount: Optional[Decimal | str] = None
    unit_price: Optional[Decimal | str] = None
    quote_ttl_seconds: Optional[int | str] = None
    reaper_interval_seconds: Optional[int | str] = None
    host: Optional[str] = None
    port: Optional[int | str] = None

    def as_overrides(self) -> Dict[str, str]:
        return {
            env_key: _stringify(getattr(self, name))
            for name, env_key in _PARAMETER_TO_ENV_KEY.items()
            if getattr(self, name) is not None
        }


def _normalize_address(raw_address: str, field_name: str) -> str:
    value = raw_address.strip()
    if not value:
        raise ConfigError(f"{field_name} must not be empty")
    if not value.startswith("0x"):
        value = "0x" + value
    if not is_hex_address(value):
        raise ConfigError(f"{field_name} is not a valid EVM address")
    return to_checksum_address(value)


def _normalize_private_key(raw_key: str) -> str:
    key = raw_key.strip()
    if not key:
        raise ConfigError("X402_PAYER_PRIVATE_KEY must not be empty")
    if not key.startswith("0x"):
        key = "0x" + key
    if len(key) != 66:
        raise ConfigError("X402_PAYER_PRIVATE_KEY must be 32 bytes (64 hex chars)")
    return key


def _positive_int(values: Mapping[str, str], key: str, default: int) -> int:
    raw = values.get(key, str(default))
    try:
        number = int(raw)
    except (ValueError, ArithmeticError) as exc:
        raise ConfigError(f"{key} must be an integer, got '{raw}'") from exc
    if number <= 0:
        raise ConfigError(f"{key} must be greater than zero")
    return number


def _money(values: Mapping[str, str], key: str, default: str) -> Decimal:
    raw = values.get(key, default)
    try:
        return parse_money_amount(raw)
    except InvalidAmount as exc:
        raise ConfigError(f"{key}: {exc}") from exc


@dataclass(frozen=True)
class ServerConfig:
    facilitator_url: str
    base_url: str
    pay_to: str
    asset_address: str
    nominal_amount: Decimal
    nominal_amount_base_units: int
    unit_price: Decimal
    quote_ttl_seconds: int = DEFAULT_QUOTE_TTL_SECONDS
    reaper_interval_seconds: int = DEFAULT_REAPER_INTERVAL_SECONDS
    max_timeout_seconds: int = 300
    network: str = "base-sepolia"
    token_decimals: int = 6
    token_name: str = "USDC"
    token_version: str = "2"
    mime_type: str = "application/json"
    description: str = "Quote-priced x402 resource"
    host: str = "0.0.0.0"
    port: int = 3001

    def requirements_template(self) -> PaymentRequirementsTemplate:
        return PaymentRequirementsTemplate(
            network=self.network,
            max_amount_required=str(self.nominal_amount_base_units),
            pay_to=self.pay_to,
            asset=self.asset_address,
            token_decimals=self.token_decimals,
            description=self.description,
            mime_type=self.mime_type,
            max_timeout_seconds=self.max_timeout_seconds,
            extra={"name": self.token_name, "version": self.token_version},
        )

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "ServerConfig":
        facilitator_url = values.get(
            "X402_FACILITATOR_URL", "https://facilitator.x402.rs"
        ).rstrip("/")
        base_url = values.get("X402_BASE_URL", "https://localhost:3001/")
        if not base_url.startswith(("http://", "https://")):
            raise ConfigError("X402_BASE_URL must be an http(s) URL")

        pay_to = _normalize_address(
            values.get("X402_PAY_TO", "0xBAc675C310721717Cd4A37F6cbeA1F081b1C2a07"),
            "X402_PAY_TO",
        )
        asset_address = _normalize_address(
            values.get(
                "X402_ASSET_ADDRESS", "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
            ),
            "X402_ASSET_ADDRESS",
        )

        decimals = int(values.get("X402_TOKEN_DECIMALS", "6"))
        nominal_amount = _money(values, "X402_NOMINAL_AMOUNT", "0.01")
        try:
            nominal_base_units = to_base_units(nominal_amount, decimals)
        except InvalidAmount as exc:
            raise ConfigError(f"X402_NOMINAL_AMOUNT: {exc}") from exc

        return cls(
            facilitator_url=facilitator_url,
            base_url=base_url,
            pay_to=pay_to,
            asset_address=asset_address,
            nominal_amount=nominal_amount,
            nominal_amount_base_units=nominal_base_units,
            unit_price=_money(values, "X402_UNIT_PRICE", "0.01"),
            quote_ttl_seconds=_positive_int(
                values, "X402_QUOTE_TTL_SECONDS", DEFAULT_QUOTE_TTL_SECONDS
            ),
            reaper_interval_seconds=_positive_int(
                values, "X402_REAPER_INTERVAL_SECONDS", DEFAULT_REAPER_INTERVAL_SECONDS
            ),
            max_timeout_seconds=_positive_int(values, "X402_MAX_TIMEOUT_SECONDS", 300),
            network=values.get("X402_NETWORK", "base-sepolia"),
            token_decimals=decimals,
            token_name=values.get("X402_TOKEN_NAME", "USDC"),
            token_version=values.get("X402_TOKEN_VERSION", "2"),
            mime_type=values.get("X402_MIME_TYPE", "application/json"),
            description=values.get("X402_DESCRIPTION", "Quote-priced x402 resource"),
            host=values.get("X402_HOST", "0.0.0.0"),
            port=_positive_int(values, "X402_PORT", 3001),
        )


@dataclass(frozen=True)
class BuyerConfig:
    server_url: str
    payer_private_key: str
    payer_address: str
    client_id: str = "demo-client"
    chain_id: int = 84532
    token_decimals: int = 6
    backdate_seconds: int = 600

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "BuyerConfig":
        raw_key = values.get("X402_PAYER_PRIVATE_KEY")
        if raw_key is None:
            raise ConfigError("X402_PAYER_PRIVATE_KEY must be provided")
        private_key = _normalize_private_key(raw_key)
        payer_address = _normalize_address(
            values.get("X402_PAYER_ADDRESS", Account.from_key(private_key).address),
            "X402_PAYER_ADDRESS",
        )
        return cls(
            server_url=values.get("X402_SERVER_URL", "http://localhost:3001").rstrip("/"),
            payer_private_key=private_key,
            payer_address=payer_address,
            client_id=values.get("X402_CLIENT_ID", "demo-client"),
            chain_id=_positive_int(values, "X402_CHAIN_ID", 84532),
            token_decimals=int(values.get("X402_TOKEN_DECIMALS", "6")),
            backdate_seconds=int(values.get("X402_PAYMENT_BACKDATE_SECONDS", "600")),
        )


def load_server_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[QuoteParameters] = None,
) -> ServerConfig:
    merged = dict(overrides or {})
    if parameters is not None:
        merged.update(parameters.as_overrides())
    values = build_environment(env_file=env_file, base=base, overrides=merged)
    try:
        return ServerConfig.from_mapping(values)
    except (ValueError, ArithmeticError) as exc:
        raise ConfigError(str(exc)) from exc


def load_buyer_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    payer_private_key: Optional[str] = None,
    server_url: Optional[str] = None,
    client_id: Optional[str] = None,
) -> BuyerConfig:
    merged = dict(overrides or {})
    for env_key, value in (
        ("X402_PAYER_PRIVATE_KEY", payer_private_key),
        ("X402_SERVER_URL", server_url),
        ("X402_CLIENT_ID", client_id),
    ):
        if value is not None:
            merged[env_key] = value
    values = build_environment(env_file=env_file, base=base, overrides=merged)
    try:
        return BuyerConfig.from_mapping(values)
    except (ValueError, ArithmeticError) as exc:
        raise ConfigError(str(exc)) from exc
