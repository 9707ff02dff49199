"""Display formatting for amounts, percentages and plain numbers (en-US style)."""

from __future__ import annotations

from typing import Literal

SignDisplay = Literal["auto", "never", "always", "except_zero"]

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}


def format_currency(
    value: float,
    currency: str = "USD",
    sign_display: SignDisplay = "auto",
) -> str:
    """Format ``value`` like ``$1,234.56`` or ``-$12.00``."""
    code = currency.upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    digits = 0 if code == "JPY" else 2
    body = f"{abs(value):,.{digits}f}"
    return f"{_sign(value, sign_display, body)}{symbol}{body}"


def format_percentage(
    value: float,
    minimum_fraction_digits: int = 0,
    maximum_fraction_digits: int = 2,
    sign_display: SignDisplay = "auto",
) -> str:
    """Format a value already expressed in percent, e.g. ``12.5`` -> ``12.5%``."""
    return (
        format_number(
            value,
            minimum_fraction_digits=minimum_fraction_digits,
            maximum_fraction_digits=maximum_fraction_digits,
            sign_display=sign_display,
        )
        + "%"
    )


def format_number(
    value: float,
    minimum_fraction_digits: int = 0,
    maximum_fraction_digits: int = 2,
    sign_display: SignDisplay = "auto",
) -> str:
    if minimum_fraction_digits > maximum_fraction_digits:
        raise ValueError("minimum_fraction_digits must not exceed maximum_fraction_digits")
    body = f"{abs(value):,.{maximum_fraction_digits}f}"
    if maximum_fraction_digits > minimum_fraction_digits:
        whole, _, fraction = body.partition(".")
        fraction = fraction.rstrip("0").ljust(minimum_fraction_digits, "0")
        body = f"{whole}.{fraction}" if fraction else whole
    return f"{_sign(value, sign_display, body)}{body}"


def _sign(value: float, sign_display: SignDisplay, body: str) -> str:
    # Values that round to zero are displayed as zero.
    is_zero = body.strip("0.,") == ""
    if sign_display == "never":
        return ""
    if value < 0 and not is_zero:
        return "-"
    if sign_display == "always":
        return "+"
    if sign_display == "except_zero" and not is_zero:
        return "+"
    return ""
