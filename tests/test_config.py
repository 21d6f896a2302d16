from decimal import Decimal

import pytest

from conftest import PAY_TO, TEST_PAYER_ADDRESS, TEST_PRIVATE_KEY
from x402_quotes.core.config import (
    ConfigError,
    QuoteParameters,
    build_environment,
    load_buyer_config,
    load_server_config,
)


class TestServerConfig:
    def test_defaults(self, server_config):
        assert server_config.facilitator_url == "https://facilitator.x402.rs"
        assert server_config.base_url == "https://localhost:3001/"
        assert server_config.pay_to == PAY_TO
        assert server_config.quote_ttl_seconds == 300
        assert server_config.reaper_interval_seconds == 60
        assert server_config.nominal_amount == Decimal("0.01")
        assert server_config.nominal_amount_base_units == 10000
        assert server_config.unit_price == Decimal("0.01")
        assert server_config.port == 3001

    def test_requirements_template(self, server_config):
        template = server_config.requirements_template()
        assert template.network == "base-sepolia"
        assert template.max_amount_required == "10000"
        assert template.token_decimals == 6
        assert template.extra == {"name": "USDC", "version": "2"}

    def test_parameters_override_environment(self):
        config = load_server_config(
            env_file=None,
            base={"X402_QUOTE_TTL_SECONDS": "60"},
            parameters=QuoteParameters(quote_ttl_seconds=120, unit_price="0.5"),
        )
        assert config.quote_ttl_seconds == 120
        assert config.unit_price == Decimal("0.5")

    def test_address_is_checksummed(self):
        config = load_server_config(
            env_file=None, base={"X402_PAY_TO": PAY_TO.lower()[2:]}
        )
        assert config.pay_to == PAY_TO

    @pytest.mark.parametrize(
        "key,value",
        [
            ("X402_PAY_TO", "0x1234"),
            ("X402_QUOTE_TTL_SECONDS", "0"),
            ("X402_REAPER_INTERVAL_SECONDS", "soon"),
            ("X402_NOMINAL_AMOUNT", "0.0000001"),
            ("X402_NOMINAL_AMOUNT", "1e999999"),
            ("X402_UNIT_PRICE", "cheap"),
            ("X402_BASE_URL", "localhost:3001"),
            ("X402_TOKEN_DECIMALS", "six"),
        ],
    )
    def test_invalid_values(self, key, value):
        with pytest.raises(ConfigError):
            load_server_config(env_file=None, base={key: value})

    def test_huge_nominal_amount_is_config_error(self):
        with pytest.raises(ConfigError, match="X402_NOMINAL_AMOUNT"):
            load_server_config(env_file=None, base={"X402_NOMINAL_AMOUNT": "1e999999"})

    def test_nominal_amount_keeps_full_precision(self):
        config = load_server_config(
            env_file=None,
            base={
                "X402_NOMINAL_AMOUNT": "10000000000.000000000000000001",
                "X402_TOKEN_DECIMALS": "18",
            },
        )
        assert config.nominal_amount_base_units == 10**28 + 1


class TestBuildEnvironment:
    def test_env_file_fills_missing_keys_only(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\n"
            "export X402_HOST=127.0.0.1\n"
            "X402_PORT='8080'\n"
            'X402_DESCRIPTION="Paid files"\n'
            "X402_NETWORK=base\n"
            "not a pair\n",
            encoding="utf-8",
        )

        values = build_environment(
            env_file=str(env_file),
            base={"X402_NETWORK": "base-sepolia"},
            overrides={"X402_PORT": "9000"},
        )

        assert values["X402_HOST"] == "127.0.0.1"
        assert values["X402_DESCRIPTION"] == "Paid files"
        assert values["X402_NETWORK"] == "base-sepolia"
        assert values["X402_PORT"] == "9000"
        assert "# comment" not in values

    def test_missing_env_file_is_ignored(self, tmp_path):
        values = build_environment(env_file=str(tmp_path / "absent"), base={"A": "1"})
        assert values == {"A": "1"}


class TestBuyerConfig:
    def test_address_derived_from_key(self):
        config = load_buyer_config(env_file=None, base={}, payer_private_key=TEST_PRIVATE_KEY[2:])
        assert config.payer_private_key == TEST_PRIVATE_KEY
        assert config.payer_address == TEST_PAYER_ADDRESS
        assert config.server_url == "http://localhost:3001"
        assert config.chain_id == 84532

    def test_missing_key(self):
        with pytest.raises(ConfigError, match="X402_PAYER_PRIVATE_KEY"):
            load_buyer_config(env_file=None, base={})

    def test_short_key(self):
        with pytest.raises(ConfigError, match="32 bytes"):
            load_buyer_config(env_file=None, base={}, payer_private_key="0xabc")

    def test_explicit_values_win(self):
        config = load_buyer_config(
            env_file=None,
            base={"X402_PAYER_PRIVATE_KEY": TEST_PRIVATE_KEY, "X402_CLIENT_ID": "env"},
            client_id="c1",
            server_url="http://quotes.local/",
        )
        assert config.client_id == "c1"
        assert config.server_url == "http://quotes.local"
