"""Unit tests for currency conversion."""

from decimal import Decimal

import pytest

from protracker.calculators.currency_converter import (
    CurrencyConverter,
    build_rate_table,
    convert,
    lookup_rate,
    parse_currency_code,
)
from protracker.exceptions import MissingRateError, ValidationError
from protracker.models.currency import ExchangeRate


@pytest.fixture
def rate_table():
    return build_rate_table(
        [
            ExchangeRate(from_currency="EUR", to_currency="USD", rate="1.10"),
            ExchangeRate(from_currency="GBP", to_currency="EUR", rate="1.17"),
        ]
    )


class TestLookupRate:
    """Test direct, inverse and identity lookups."""

    def test_direct_rate(self, rate_table):
        assert lookup_rate("EUR", "USD", rate_table) == Decimal("1.10")

    def test_inverse_rate(self, rate_table):
        rate = lookup_rate("USD", "EUR", rate_table)
        assert rate.quantize(Decimal("0.0001")) == Decimal("0.9091")

    def test_same_currency(self):
        assert lookup_rate("JPY", "jpy", {}) == Decimal("1")

    def test_missing_pair(self, rate_table):
        with pytest.raises(MissingRateError) as exc_info:
            lookup_rate("USD", "INR", rate_table)

        assert exc_info.value.from_currency == "USD"
        assert exc_info.value.to_currency == "INR"
        assert "USD/INR" in exc_info.value.recovery_hint

    @pytest.mark.parametrize("code", ["US", "X1", "EURO", ""])
    def test_malformed_code(self, code):
        with pytest.raises(ValidationError) as exc_info:
            lookup_rate("USD", code, {})

        assert exc_info.value.field == "to_currency"
        assert exc_info.value.value == code

    def test_parse_currency_code(self):
        assert parse_currency_code(" gbp ") == "GBP"
        with pytest.raises(ValidationError, match="Invalid currency code"):
            parse_currency_code("12A")

    def test_later_rate_replaces_earlier(self):
        table = build_rate_table(
            [
                ExchangeRate(from_currency="EUR", to_currency="USD", rate="1.05"),
                ExchangeRate(from_currency="EUR", to_currency="USD", rate="1.10"),
            ]
        )
        assert table[("EUR", "USD")] == Decimal("1.10")


class TestConvert:
    """Test amount conversion."""

    def test_direct_conversion(self, rate_table):
        assert convert(Decimal("100"), "EUR", "USD", rate_table) == Decimal("110.00")

    def test_same_currency_returns_amount(self):
        assert convert(Decimal("42.50"), "USD", "USD") == Decimal("42.50")

    def test_accepts_string_amounts(self, rate_table):
        assert convert("10", "GBP", "EUR", rate_table) == Decimal("11.70")

    def test_no_silent_one_to_one(self):
        with pytest.raises(MissingRateError):
            convert(Decimal("100"), "EUR", "USD", {})

    def test_malformed_code_is_not_a_missing_rate(self):
        with pytest.raises(ValidationError):
            convert(Decimal("100"), "USD", "X1", {})


class TestCurrencyConverter:
    """Test the stateful converter."""

    def test_update_rate_replaces_pair(self):
        converter = CurrencyConverter(
            [ExchangeRate(from_currency="EUR", to_currency="USD", rate="1.05")]
        )
        converter.update_rate(
            ExchangeRate(from_currency="EUR", to_currency="USD", rate="1.10")
        )

        assert len(converter.rates) == 1
        assert converter.convert(Decimal("10"), "EUR", "USD") == Decimal("11.00")

    def test_update_rate_adds_new_pair(self):
        converter = CurrencyConverter()
        converter.update_rate(
            ExchangeRate(from_currency="GBP", to_currency="EUR", rate="1.17")
        )

        assert converter.has_rate("GBP", "EUR")
        assert converter.has_rate("EUR", "GBP")
        assert not converter.has_rate("GBP", "USD")

    def test_inverse_conversion(self):
        converter = CurrencyConverter(
            [ExchangeRate(from_currency="GBP", to_currency="EUR", rate="1.17")]
        )
        result = converter.convert(Decimal("10"), "EUR", "GBP")
        assert result.quantize(Decimal("0.01")) == Decimal("8.55")
