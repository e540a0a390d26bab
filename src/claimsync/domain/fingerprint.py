"""Content fingerprints for change detection."""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Final

from claimsync.domain.clock import ensure_utc

if TYPE_CHECKING:
    from claimsync.domain.model import NormalizedItem

BODY_PREFIX_LENGTH: Final[int] = 2000

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def normalize_whitespace(text: str) -> str:
    return " ".join(text.split())


def epoch_millis(value: datetime) -> int:
    return (ensure_utc(value) - _EPOCH) // timedelta(milliseconds=1)


def compute_fingerprint(
    title: str,
    url: str,
    published_at: datetime | None,
    body_text: str,
) -> str:
    """SHA-256 over ``title|url|published_ms|body_prefix``.

    An unknown date leaves the ``published_ms`` segment empty.

    Only the first ``BODY_PREFIX_LENGTH`` characters of the whitespace-normalised
    body take part, so edits further down and markup-only changes do not count.
    """

    body_prefix = normalize_whitespace(body_text)[:BODY_PREFIX_LENGTH]
    published_ms = "" if published_at is None else str(epoch_millis(published_at))
    payload = f"{title}|{url}|{published_ms}|{body_prefix}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def fingerprint_item(item: NormalizedItem) -> str:
    return compute_fingerprint(item.title, item.url, item.published_at, item.body_text)
