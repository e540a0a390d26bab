"""Free-text fact extraction for revenue claims and capability updates."""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Final, Literal

from claimsync.domain.model import Category

MONTHLY_CONFIDENCE: Final[float] = 0.8
ANNUAL_CONFIDENCE: Final[float] = 0.8
DERIVED_CONFIDENCE: Final[float] = 0.6
SPECULATIVE_FACTOR: Final[float] = 0.5

_SCALES: Final[dict[str, int]] = {
    "k": 1_000,
    "thousand": 1_000,
    "m": 1_000_000,
    "million": 1_000_000,
}

_NUMBER = r"\d[\d,]*(?:\.\d+)?"
_SCALE = r"(?:thousand|million|k|m)\b"
_AMOUNT = rf"\$?\s*(?P<amount>{_NUMBER})\s*(?P<scale>{_SCALE})?"

_MONTHLY_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(rf"{_AMOUNT}\s*MRR\b", re.IGNORECASE),
    re.compile(
        rf"{_AMOUNT}\s*(?:/\s*|per\s+|a\s+)?(?:monthly|month|mo)\b",
        re.IGNORECASE,
    ),
    re.compile(rf"\b(?:MRR|monthly|month)\s*[:=]?\s*{_AMOUNT}", re.IGNORECASE),
)

_ANNUAL_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(rf"{_AMOUNT}\s*ARR\b", re.IGNORECASE),
    re.compile(
        rf"{_AMOUNT}\s*(?:/\s*|per\s+|a\s+)?(?:annually|annual|year|yr)\b",
        re.IGNORECASE,
    ),
    re.compile(rf"\b(?:ARR|annual|annually|yearly)\s*[:=]?\s*{_AMOUNT}", re.IGNORECASE),
)

# At least one side carries a currency sign or a scale, so dates and year spans pass.
_MONEY = rf"(?:\$\s*{_NUMBER}\s*(?:{_SCALE})?|{_NUMBER}\s*{_SCALE})"
_RANGE = re.compile(
    rf"{_MONEY}\s*[-–—]\s*\$?\s*\d"
    rf"|\$?\s*{_NUMBER}\s*(?:{_SCALE})?\s*[-–—]\s*(?:\$\s*\d|{_NUMBER}\s*{_SCALE})",
    re.IGNORECASE,
)

_SPECULATIVE = re.compile(
    r"\b(?:target\w*|aim(?:s|ed|ing)?|goals?|projected|projections?|expect\w*"
    r"|hop(?:e|es|ed|ing)|plan(?:s|ned|ning)?)\b",
    re.IGNORECASE,
)

_CURRENCY = re.compile(r"\$|\bUSD\b|\bEUR\b|\bGBP\b|€|£")
_CURRENCY_CODES: Final[dict[str, str]] = {"$": "USD", "€": "EUR", "£": "GBP"}

_TOOL_PATTERNS: Final[tuple[tuple[str, re.Pattern[str]], ...]] = (
    ("cursor", re.compile(r"\bcursor(?:\.ai)?\b", re.IGNORECASE)),
    ("claude", re.compile(r"\b(?:claude|anthropic)\b", re.IGNORECASE)),
    ("copilot", re.compile(r"\bcopilot\b", re.IGNORECASE)),
    ("lovable", re.compile(r"\blovable(?:\.dev)?\b", re.IGNORECASE)),
    ("replit", re.compile(r"\breplit\b", re.IGNORECASE)),
    ("bolt", re.compile(r"\bbolt(?:\.new|\s+new)\b", re.IGNORECASE)),
    ("v0", re.compile(r"\bv0(?:\.dev)?\b", re.IGNORECASE)),
    ("gpt", re.compile(r"\b(?:gpt-[34]\w*|chatgpt)\b", re.IGNORECASE)),
)

_TRIGGER = r"(?:vibe-?coded|built|with|using|ai-assisted|ai)\b"
_PERCENT_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(rf"\b(\d{{1,3}})\s*%\s*{_TRIGGER}", re.IGNORECASE),
    re.compile(rf"\b{_TRIGGER}\s*(\d{{1,3}})\s*%", re.IGNORECASE),
    re.compile(rf"\b(\d{{1,3}})\s*percent\s+{_TRIGGER}", re.IGNORECASE),
)

# Checked in order; the first family with a hit wins.
_CATEGORY_KEYWORDS: Final[tuple[tuple[Category, re.Pattern[str]], ...]] = (
    (
        Category.NEW_MODEL,
        re.compile(r"new model|introducing|launch|gpt-|claude|gemini", re.IGNORECASE),
    ),
    (Category.API_UPDATE, re.compile(r"\bapi\b|endpoint", re.IGNORECASE)),
    (Category.SDK, re.compile(r"\bsdk\b|library|package", re.IGNORECASE)),
    (Category.PRICING, re.compile(r"price|pricing|cost", re.IGNORECASE)),
    (
        Category.DEPRECATION,
        re.compile(r"deprecat|sunset|remove|end of life", re.IGNORECASE),
    ),
    (Category.FEATURE, re.compile(r"feature|capability|support", re.IGNORECASE)),
    (Category.DOCS, re.compile(r"\bdoc|guide|tutorial", re.IGNORECASE)),
)

type Period = Literal["month", "year"]


@dataclass(frozen=True, slots=True)
class ParsedClaim:
    """A revenue figure pulled out of free text.

    ``monthly_cents`` is always set. When only an annual figure was stated it is
    derived as a twelfth of ``annual_cents`` and ``derived`` is true.
    """

    monthly_cents: int
    annual_cents: int | None
    currency: str
    period: Period
    derived: bool
    speculative: bool
    confidence: float
    raw_text: str


def parse_claim(text: str) -> ParsedClaim | None:
    """Parse a monthly or annual revenue claim.

    Returns ``None`` for text without a recognisable figure and for ranges such
    as ``$5k-$10k``, which do not state a single value.
    """

    normalized = text.strip()
    if not normalized or _RANGE.search(normalized):
        return None

    monthly = _first_amount(_MONTHLY_PATTERNS, normalized)
    annual: int | None = None
    if monthly is not None:
        period: Period = "month"
        confidence = MONTHLY_CONFIDENCE
        derived = False
    else:
        annual = _first_amount(_ANNUAL_PATTERNS, normalized)
        if annual is None:
            return None
        monthly = _round_cents(Decimal(annual) / 12)
        period = "year"
        confidence = DERIVED_CONFIDENCE
        derived = True

    speculative = _SPECULATIVE.search(normalized) is not None
    if speculative:
        confidence *= SPECULATIVE_FACTOR

    return ParsedClaim(
        monthly_cents=monthly,
        annual_cents=annual,
        currency=detect_currency(normalized),
        period=period,
        derived=derived,
        speculative=speculative,
        confidence=confidence,
        raw_text=text,
    )


def detect_currency(text: str) -> str:
    match = _CURRENCY.search(text)
    if match is None:
        return "USD"
    token = match.group(0)
    return _CURRENCY_CODES.get(token, token.upper())


def extract_tags(text: str) -> frozenset[str]:
    """Return the tool names mentioned in ``text``."""

    return frozenset(name for name, pattern in _TOOL_PATTERNS if pattern.search(text))


def extract_percent(text: str) -> int | None:
    """Return a share such as ``90% vibecoded`` or ``built 80% with``."""

    for pattern in _PERCENT_PATTERNS:
        for match in pattern.finditer(text):
            percent = int(match.group(1))
            if 0 <= percent <= 100:
                return percent
    return None


def categorize(title: str, body: str) -> Category:
    text = f"{title} {body}"
    for category, pattern in _CATEGORY_KEYWORDS:
        if pattern.search(text):
            return category
    return Category.OTHER


def _first_amount(patterns: tuple[re.Pattern[str], ...], text: str) -> int | None:
    for pattern in patterns:
        for match in pattern.finditer(text):
            cents = _to_cents(match.group("amount"), match.group("scale"))
            if cents > 0:
                return cents
    return None


def _to_cents(amount: str, scale: str | None) -> int:
    value = Decimal(amount.replace(",", ""))
    if scale:
        value *= _SCALES[scale.lower()]
    return _round_cents(value * 100)


def _round_cents(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))
