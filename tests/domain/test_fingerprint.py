from __future__ import annotations

import hashlib
from datetime import UTC, datetime, timedelta, timezone

from claimsync.domain.fingerprint import (
    BODY_PREFIX_LENGTH,
    compute_fingerprint,
    epoch_millis,
    fingerprint_item,
)
from tests.helpers.items import make_item

PUBLISHED = datetime(2024, 5, 1, 9, 30, tzinfo=UTC)


def test_fingerprint_hashes_pipe_joined_fields() -> None:
    expected = hashlib.sha256(
        f"Title|https://example.com/a|{epoch_millis(PUBLISHED)}|Body text".encode()
    ).hexdigest()

    assert compute_fingerprint("Title", "https://example.com/a", PUBLISHED, "Body text") == expected


def test_epoch_millis_is_timezone_independent() -> None:
    shifted = PUBLISHED.astimezone(timezone(timedelta(hours=5)))

    assert epoch_millis(PUBLISHED) == epoch_millis(shifted) == 1_714_555_800_000


def test_fingerprint_ignores_whitespace_differences() -> None:
    compact = compute_fingerprint("T", "u", PUBLISHED, "one two three")
    spaced = compute_fingerprint("T", "u", PUBLISHED, "  one\n\ttwo   three ")

    assert compact == spaced


def test_fingerprint_only_covers_body_prefix() -> None:
    prefix = "x" * BODY_PREFIX_LENGTH

    assert compute_fingerprint("T", "u", PUBLISHED, prefix + " tail") == compute_fingerprint(
        "T", "u", PUBLISHED, prefix + " other tail"
    )


def test_fingerprint_changes_with_each_covered_field() -> None:
    base = compute_fingerprint("T", "u", PUBLISHED, "body")

    assert compute_fingerprint("T2", "u", PUBLISHED, "body") != base
    assert compute_fingerprint("T", "u2", PUBLISHED, "body") != base
    assert compute_fingerprint("T", "u", PUBLISHED + timedelta(milliseconds=1), "body") != base
    assert compute_fingerprint("T", "u", PUBLISHED, "body!") != base


def test_fingerprint_item_ignores_rich_body() -> None:
    plain = make_item(body_rich="")
    rich = make_item(body_rich="<p>Models can now see images</p>")

    assert fingerprint_item(plain) == fingerprint_item(rich)


def test_unknown_date_leaves_its_segment_empty() -> None:
    expected = hashlib.sha256(b"Title|https://example.com/a||Body text").hexdigest()

    undated = compute_fingerprint("Title", "https://example.com/a", None, "Body text")

    assert undated == expected
    assert undated != compute_fingerprint("Title", "https://example.com/a", PUBLISHED, "Body text")
