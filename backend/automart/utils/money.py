"""Structured money values.

Prices arrive from forms as display strings such as ``"$1,200/month"``.
They are parsed once at the boundary into a :class:`Money` and stored as
amount + currency + billing period; display strings are produced again only
when serialising.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

ONE_TIME = "one_time"
MONTHLY = "monthly"
YEARLY = "yearly"
BILLING_PERIODS = (ONE_TIME, MONTHLY, YEARLY)

_PERIOD_SUFFIX = {
    MONTHLY: "/month",
    YEARLY: "/year",
    ONE_TIME: "",
}

_CURRENCY_SYMBOLS = {
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "₦": "NGN",
}
_SYMBOL_FOR = {v: k for k, v in _CURRENCY_SYMBOLS.items()}

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")
_ISO_CODE = re.compile(r"\b(USD|EUR|GBP|NGN|CAD|AUD)\b", re.IGNORECASE)
_MONTHLY_HINT = re.compile(r"(/\s*mo(nth)?\b|per\s+month|monthly|/m\b)", re.IGNORECASE)
_YEARLY_HINT = re.compile(r"(/\s*(yr|year)\b|per\s+year|yearly|annual(ly)?)", re.IGNORECASE)

# Returned for empty or malformed price strings.
FALLBACK_AMOUNT = 0.0


@dataclass(frozen=True)
class Money:
    amount: float
    currency: str = "USD"
    period: str = ONE_TIME

    def to_dict(self) -> dict:
        return {
            "amount": float(self.amount),
            "currency": self.currency,
            "period": self.period,
            "display": format_money(self),
        }


def parse_amount(value: Any) -> float:
    """Numeric part of a display price; never raises.

    Every character that is not a digit, dot or minus sign is dropped before
    parsing, so ``"$1,200/month"`` gives ``1200.0``. Anything that still does
    not parse (``""``, ``"call us"``, ``"1.2.3"``) gives ``FALLBACK_AMOUNT``.
    """
    if value is None or isinstance(value, bool):
        return FALLBACK_AMOUNT
    if isinstance(value, (int, float)):
        f = float(value)
        return f if math.isfinite(f) else FALLBACK_AMOUNT

    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return FALLBACK_AMOUNT
    try:
        f = float(cleaned)
    except ValueError:
        return FALLBACK_AMOUNT
    if not math.isfinite(f):
        return FALLBACK_AMOUNT
    return f


def _detect_currency(text: str, default: str) -> str:
    m = _ISO_CODE.search(text)
    if m:
        return m.group(1).upper()
    for symbol, code in _CURRENCY_SYMBOLS.items():
        if symbol in text:
            return code
    return default


def _detect_period(text: str) -> str:
    if _MONTHLY_HINT.search(text):
        return MONTHLY
    if _YEARLY_HINT.search(text):
        return YEARLY
    return ONE_TIME


def parse_price(value: Any, *, currency: str = "USD", period: str | None = None) -> Money:
    if isinstance(value, Money):
        return value
    text = "" if value is None else str(value)
    detected_period = period or (_detect_period(text) if isinstance(value, str) else ONE_TIME)
    if detected_period not in BILLING_PERIODS:
        detected_period = ONE_TIME
    return Money(
        amount=parse_amount(value),
        currency=_detect_currency(text, currency) if isinstance(value, str) else currency,
        period=detected_period,
    )


def _symbol(currency: str) -> str:
    return _SYMBOL_FOR.get((currency or "USD").upper(), "")


def format_money(money: Money) -> str:
    symbol = _symbol(money.currency)
    body = f"{abs(float(money.amount)):,.2f}"
    sign = "-" if float(money.amount) < 0 else ""
    text = f"{sign}{symbol}{body}" if symbol else f"{sign}{body} {money.currency}"
    return text + _PERIOD_SUFFIX.get(money.period, "")


def format_signed_amount(amount: Any, currency: str = "USD") -> str:
    """Ledger display: ``-45.5`` -> ``"-$45.50"``, ``120`` -> ``"+$120.00"``."""
    value = parse_amount(amount)
    prefix = "-" if value < 0 else "+"
    symbol = _symbol(currency) or "$"
    return f"{prefix}{symbol}{abs(value):,.2f}"


def round_money(value: float) -> float:
    return round(float(value or 0.0), 2)
