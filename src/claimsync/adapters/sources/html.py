"""Shared parsing helpers for HTML-scraping source adapters."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Final

from bs4 import BeautifulSoup

if TYPE_CHECKING:
    from bs4 import Tag

MAX_TITLE_LENGTH: Final[int] = 200
MAX_BODY_LENGTH: Final[int] = 2000

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")
_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
_TEXT_DATE_FORMATS: Final[tuple[str, ...]] = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %Y",
)


def parse_html(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def html_to_text(markup: str | Tag) -> str:
    """Visible text of ``markup``, one block element per line."""

    soup = parse_html(markup) if isinstance(markup, str) else markup
    for element in soup.find_all(["script", "style", "noscript"]):
        element.decompose()
    return soup.get_text(separator="\n", strip=True)


def slugify(text: str) -> str:
    return _SLUG_STRIP.sub("-", text.lower()).strip("-")


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit].rstrip()


def parse_date(value: str | None) -> datetime | None:
    """Best-effort parse of a date as it appears on changelog pages and feeds.

    Accepts ISO 8601, RFC 2822 and spelled-out month formats. Naive results are
    taken to be UTC. Returns ``None`` when nothing matches.
    """

    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None

    try:
        parsed = datetime.fromisoformat(candidate.replace("Z", "+00:00"))
    except ValueError:
        parsed = None

    if parsed is None:
        try:
            parsed = parsedate_to_datetime(candidate)
        except (TypeError, ValueError, IndexError):
            parsed = None

    if parsed is None:
        match = _ISO_DATE.search(candidate)
        if match:
            try:
                parsed = datetime.fromisoformat(match.group(0))
            except ValueError:
                parsed = None

    if parsed is None:
        for fmt in _TEXT_DATE_FORMATS:
            try:
                parsed = datetime.strptime(candidate, fmt)  # noqa: DTZ007
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
