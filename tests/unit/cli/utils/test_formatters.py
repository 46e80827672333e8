"""Unit tests for CLI output formatters."""

from decimal import Decimal

from protracker.cli.utils.formatters import (
    format_amounts,
    format_error,
    format_info,
    format_money,
    format_success,
    format_table,
    format_warning,
)


class TestFormatters:
    """Test suite for CLI output formatters."""

    def test_message_formatters_keep_message(self):
        """Test that each formatter includes the message and its symbol."""
        assert "✓ Saved" in format_success("Saved")
        assert "✗ Failed" in format_error("Failed")
        assert "⚠ Careful" in format_warning("Careful")
        assert "ℹ Note" in format_info("Note")

    def test_format_money(self):
        assert format_money(Decimal("1234.5"), "USD") == "USD 1,234.50"
        assert format_money(Decimal("0"), "EUR") == "EUR 0.00"

    def test_format_amounts_keeps_currencies_apart(self):
        amounts = {"USD": Decimal("100"), "EUR": Decimal("20.5")}
        assert format_amounts(amounts) == "USD 100.00 + EUR 20.50"

    def test_format_amounts_empty(self):
        assert format_amounts({}) == "-"

    def test_format_table_with_headers_and_rows(self):
        """Test table formatting with headers and data."""
        headers = ["Client", "Invoiced"]
        rows = [["Acme", "USD 250.00"], ["Beta Ltd", "EUR 90.00"]]
        lines = format_table(headers, rows).splitlines()

        assert lines[0] == "+----------+------------+"
        assert lines[1] == "| Client   | Invoiced   |"
        assert lines[3] == "| Acme     | USD 250.00 |"
        assert len(lines) == 6

    def test_format_table_with_empty_rows(self):
        """Test table formatting with no data rows."""
        result = format_table(["Name", "Hours"], [])
        assert "Name" in result
        assert len(result.splitlines()) == 3

    def test_format_table_truncates_long_values(self):
        """Test that cells are cut to the maximum column width."""
        result = format_table(["Description"], [["x" * 30]], max_width=12)
        assert "x" * 12 in result
        assert "x" * 13 not in result

    def test_format_table_without_headers(self):
        assert format_table([], [["a"]]) == ""
