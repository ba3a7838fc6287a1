"""Money and date formatting for rendered documents."""

from datetime import date, datetime
from decimal import Decimal
from typing import Union

from babel.dates import format_date
from babel.numbers import format_currency as babel_format_currency
from babel.numbers import format_decimal

# Standard PDF fonts only carry the WinAnsi (cp1252) character set
PDF_TEXT_ENCODING = "cp1252"


def format_currency(
    amount: Union[int, float, Decimal],
    currency: str,
    locale: str = "en_US"
) -> str:
    """
    Format an amount in the given currency, e.g. ``$5,000.00``.

    The amount is rendered as-is; no conversion happens. Symbols the
    standard PDF fonts cannot draw fall back to the ISO code.
    """
    formatted = babel_format_currency(amount, currency, locale=locale)
    try:
        formatted.encode(PDF_TEXT_ENCODING)
    except UnicodeEncodeError:
        number = format_decimal(amount, format="#,##0.00", locale=locale)
        formatted = f"{currency} {number}"
    return formatted


def format_long_date(value: Union[date, datetime], locale: str = "en_US") -> str:
    """Localized long date, e.g. ``January 15, 2025``."""
    if isinstance(value, datetime):
        value = value.date()
    return format_date(value, format="long", locale=locale)
