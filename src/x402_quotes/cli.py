"""
Command-line interface for running the quote server and exercising it as a buyer.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable, Sequence, Tuple

import requests

from .api import ConfigError, create_buyer, create_quote_service


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _env_override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _collect_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    return {key: value for key, value in pairs}


def _positive(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected an integer, got '{value}'") from exc
    if number < 1:
        raise argparse.ArgumentTypeError("Value must be at least 1")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="x402-quotes",
        description="Serve or buy quote-priced x402 resources",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing X402_* settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_env_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("serve", help="Run the quote server")

    quote = commands.add_parser("quote", help="Request a quote from a running server")
    quote.add_argument("--files", type=_positive, default=1, help="Number of files to price")

    buy = commands.add_parser("buy", help="Quote, sign and pay for the protected resource")
    buy.add_argument("--files", type=_positive, default=1, help="Number of files to price")
    buy.add_argument("--path", default="/resource", help="Protected path (default: /resource)")
    return parser


def _serve(args: argparse.Namespace, overrides: dict[str, str]) -> int:
    import uvicorn

    from .server import create_app

    try:
        service = create_quote_service(env_file=args.env_file, overrides=overrides)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    logging.info(
        "Serving quotes on %s:%d (ttl %ss, facilitator %s)",
        service.config.host,
        service.config.port,
        service.config.quote_ttl_seconds,
        service.config.facilitator_url,
    )
    uvicorn.run(create_app(service), host=service.config.host, port=service.config.port)
    return 0


def _buyer_command(args: argparse.Namespace, overrides: dict[str, str]) -> int:
    try:
        buyer = create_buyer(
            env_file=args.env_file, overrides=overrides, session=requests.Session()
        )
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    try:
        if args.command == "quote":
            quote = buyer.request_quote(args.files)
            print(json.dumps(quote.to_dict()))
            return 0
        response = buyer.buy(args.files, args.path)
    except (requests.RequestException, RuntimeError, ValueError) as exc:
        logging.error("Request failed: %s", exc)
        return 1

    if response.status_code >= 400:
        logging.error("Server responded with %s: %s", response.status_code, response.text)
        return 1
    settlement = response.headers.get("X-PAYMENT-RESPONSE")
    if settlement:
        logging.info("Settlement receipt: %s", settlement)
    print(response.text)
    return 0


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())

    if args.command == "serve":
        return _serve(args, overrides)
    return _buyer_command(args, overrides)


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
