"""
Tests for environment settings.
"""
import pytest
from decimal import Decimal

from perp_market.config.settings import (
    KeeperConfig,
    LogConfig,
    MarginConfig,
    OrderConfig,
    default_market_configuration,
    get_env_decimal,
    get_env_int,
    get_env_str,
    validate_all_configs,
)
from perp_market.exceptions import ConfigurationError


class TestEnvHelpers:

    def test_int_default(self, monkeypatch):
        monkeypatch.delenv("PERP_TEST_INT", raising=False)
        assert get_env_int("PERP_TEST_INT", 7) == 7

    def test_int_from_env(self, monkeypatch):
        monkeypatch.setenv("PERP_TEST_INT", "30")
        assert get_env_int("PERP_TEST_INT", 7, min_value=0, max_value=60) == 30

    @pytest.mark.parametrize("value", ["abc", "-1", "61"])
    def test_int_rejected(self, monkeypatch, value):
        monkeypatch.setenv("PERP_TEST_INT", value)
        with pytest.raises(ConfigurationError) as exc_info:
            get_env_int("PERP_TEST_INT", 7, min_value=0, max_value=60)
        assert exc_info.value.config_key == "PERP_TEST_INT"

    def test_decimal_from_env(self, monkeypatch):
        monkeypatch.setenv("PERP_TEST_DECIMAL", " 0.075 ")
        assert get_env_decimal("PERP_TEST_DECIMAL", "0.1") == Decimal("0.075")

    def test_decimal_default(self, monkeypatch):
        monkeypatch.delenv("PERP_TEST_DECIMAL", raising=False)
        assert get_env_decimal("PERP_TEST_DECIMAL", "0.1") == Decimal("0.1")

    @pytest.mark.parametrize("value", ["ten", "NaN", "Infinity", "1.5"])
    def test_decimal_rejected(self, monkeypatch, value):
        monkeypatch.setenv("PERP_TEST_DECIMAL", value)
        with pytest.raises(ConfigurationError):
            get_env_decimal("PERP_TEST_DECIMAL", "0.1", min_value=Decimal("0"), max_value=Decimal("1"))

    def test_str(self, monkeypatch):
        monkeypatch.setenv("PERP_TEST_STR", "debug")
        assert get_env_str("PERP_TEST_STR", "INFO") == "debug"


class TestValidation:

    def test_defaults_are_valid(self):
        validate_all_configs()

    def test_order_ages(self, monkeypatch):
        monkeypatch.setattr(OrderConfig, "MIN_ORDER_AGE", 120)
        with pytest.raises(ConfigurationError):
            validate_all_configs()

    def test_publish_band(self, monkeypatch):
        monkeypatch.setattr(OrderConfig, "PYTH_PUBLISH_TIME_MIN", 20)
        with pytest.raises(ConfigurationError):
            OrderConfig.validate()

    def test_margin_ratios(self, monkeypatch):
        monkeypatch.setattr(MarginConfig, "MAINTENANCE_MARGIN_RATIO", Decimal("0.5"))
        with pytest.raises(ConfigurationError):
            MarginConfig.validate()

    def test_keeper_fee_bounds(self, monkeypatch):
        monkeypatch.setattr(KeeperConfig, "MIN_KEEPER_FEE_USD", Decimal("5"))
        monkeypatch.setattr(KeeperConfig, "MAX_KEEPER_FEE_USD", Decimal("1"))
        with pytest.raises(ConfigurationError):
            KeeperConfig.validate()

    def test_log_level(self, monkeypatch):
        monkeypatch.setattr(LogConfig, "LEVEL", "VERBOSE")
        with pytest.raises(ConfigurationError):
            LogConfig.validate()


class TestDefaultMarketConfiguration:

    def test_built_from_settings(self, monkeypatch):
        monkeypatch.setattr(OrderConfig, "MIN_ORDER_AGE", 5)
        monkeypatch.setattr(KeeperConfig, "TAKER_FEE", Decimal("0.002"))

        config = default_market_configuration()

        assert config.min_order_age == 5
        assert config.max_order_age == OrderConfig.MAX_ORDER_AGE
        assert config.taker_fee.value == Decimal("0.002")
