"""Tests for Form6111Config validation and normalization."""

from decimal import Decimal

import pytest

from statutory_modules.form6111.config import Form6111Config


class TestCurrency:
    @pytest.mark.parametrize("raw", ["ils", "Ils", " ILS "])
    def test_currency_is_normalized(self, rule_set, raw):
        config = Form6111Config(rule_set=rule_set, currency=raw)

        assert config.currency == "ILS"

    def test_invalid_currency_rejected(self, rule_set):
        with pytest.raises(ValueError, match="currency"):
            Form6111Config(rule_set=rule_set, currency="shekel")


class TestValidation:
    def test_epsilon_coerced_to_decimal(self, rule_set):
        config = Form6111Config(rule_set=rule_set, epsilon="0.05")

        assert config.epsilon == Decimal("0.05")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"epsilon": Decimal("-1")},
            {"display_precision": -1},
            {"max_workers": 0},
            {"min_tax_year": 2030, "max_tax_year": 2020},
        ],
    )
    def test_bad_values_rejected(self, rule_set, overrides):
        with pytest.raises(ValueError):
            Form6111Config(rule_set=rule_set, **overrides)

    def test_quantum_follows_display_precision(self, rule_set):
        assert Form6111Config(rule_set=rule_set, display_precision=0).quantum == Decimal("1")
        assert Form6111Config(rule_set=rule_set).quantum == Decimal("0.01")
