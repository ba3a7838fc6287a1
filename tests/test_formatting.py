"""Tests for money and date formatting."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from partner_portal.pdf.formatting import format_currency, format_long_date


class TestFormatCurrency:
    """Tests for format_currency."""

    @pytest.mark.parametrize(
        "amount, expected",
        [
            (5000, "$5,000.00"),
            (Decimal("0"), "$0.00"),
            (1234567.891, "$1,234,567.89"),
            (Decimal("21250.5"), "$21,250.50"),
        ],
    )
    def test_usd(self, amount, expected):
        assert format_currency(amount, "USD") == expected

    def test_euro_symbol_kept(self):
        assert format_currency(1234.5, "EUR") == "€1,234.50"

    def test_locale_grouping(self):
        formatted = format_currency(1234.5, "EUR", locale="de_DE")

        assert "1.234,50" in formatted
        assert "€" in formatted

    def test_symbol_outside_standard_fonts_uses_code(self):
        """Currencies whose symbol the PDF fonts cannot draw show the ISO code."""
        assert format_currency(5000, "INR") == "INR 5,000.00"

    def test_no_conversion(self):
        assert format_currency(100, "GBP") == "£100.00"


class TestFormatLongDate:
    """Tests for format_long_date."""

    def test_date(self):
        assert format_long_date(date(2025, 1, 15)) == "January 15, 2025"

    def test_datetime(self):
        value = datetime(2025, 3, 2, 18, 45, tzinfo=timezone.utc)

        assert format_long_date(value) == "March 2, 2025"

    def test_other_locale(self):
        assert format_long_date(date(2025, 1, 15), "de_DE") == "15. Januar 2025"
