from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import httpx
import pytest

from claimsync.adapters.sources import ChangelogAdapter, parse_changelog
from claimsync.config.sources import ChangelogSourceConfig
from claimsync.domain.change_detection import UpsertEngine
from claimsync.domain.errors import SourceFetchError
from tests.helpers.http import make_client_factory

if TYPE_CHECKING:
    from collections.abc import Callable

    from claimsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from tests.helpers.clock import FrozenClock

    type UowFactory = Callable[[], SqlAlchemyUnitOfWork]

PAGE_URL = "https://docs.example.com/changelog"

ARTICLE_PAGE = """
<html><body>
  <article>
    <h2>Vision in the API</h2>
    <time datetime="2024-05-01">May 1, 2024</time>
    <p>Models can now see images.</p>
    <script>track()</script>
  </article>
  <article class="changelog-entry">
    <h3>Vision in the API</h3>
    <p>A second entry with the same heading.</p>
  </article>
  <article><p>An entry without a heading is ignored.</p></article>
  <article><h2>Intro</h2><p>Too short a title.</p></article>
</body></html>
"""

HEADING_PAGE = """
<html><body>
  <h1>Changelog</h1>
  <h2>Overview</h2>
  <p>Navigation text.</p>
  <h2>March 5, 2024</h2>
  <p>Batch API launched.</p>
  <ul><li>Half the price of synchronous calls.</li></ul>
  <h3>Tool use is generally available</h3>
  <p>Tools work in every region.</p>
</body></html>
"""


def test_parse_changelog_reads_entry_containers() -> None:
    items = parse_changelog(ARTICLE_PAGE, source_id="openai", page_url=PAGE_URL, max_items=20)

    assert [item.url for item in items] == [
        f"{PAGE_URL}#vision-in-the-api",
        f"{PAGE_URL}#vision-in-the-api-2",
    ]
    first = items[0]
    assert first.source_id == "openai"
    assert first.title == "Vision in the API"
    assert first.external_id == "openai-vision-in-the-api"
    assert first.published_at == datetime(2024, 5, 1, tzinfo=UTC)
    assert "Models can now see images." in first.body_text
    assert "track()" not in first.body_text
    assert "<p>Models can now see images.</p>" in first.body_rich
    assert items[1].published_at is None


def test_parse_changelog_falls_back_to_headings() -> None:
    items = parse_changelog(
        HEADING_PAGE, source_id="anthropic", page_url=PAGE_URL, max_items=20
    )

    assert [item.title for item in items] == ["March 5, 2024", "Tool use is generally available"]
    batch = items[0]
    assert batch.url == f"{PAGE_URL}#march-5-2024"
    assert batch.published_at == datetime(2024, 3, 5, tzinfo=UTC)
    assert batch.body_text == "Batch API launched.\nHalf the price of synchronous calls."
    assert items[1].body_text == "Tools work in every region."


def test_parse_changelog_honours_max_items() -> None:
    items = parse_changelog(HEADING_PAGE, source_id="anthropic", page_url=PAGE_URL, max_items=1)

    assert len(items) == 1


def test_parse_changelog_without_entries() -> None:
    items = parse_changelog("<p>Nothing here</p>", source_id="x", page_url=PAGE_URL, max_items=5)

    assert items == []


def test_adapter_fetches_and_parses_page() -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, text=ARTICLE_PAGE)

    adapter = ChangelogAdapter(
        ChangelogSourceConfig(source_id="openai", url=PAGE_URL),
        client_factory=make_client_factory(handler),
    )

    items = asyncio.run(adapter.fetch_all())

    assert adapter.name == "openai"
    assert requested == [PAGE_URL]
    assert len(items) == 2


def test_adapter_raises_on_http_error() -> None:
    adapter = ChangelogAdapter(
        ChangelogSourceConfig(source_id="openai", url=PAGE_URL),
        client_factory=make_client_factory(lambda _request: httpx.Response(404)),
    )

    with pytest.raises(SourceFetchError, match="openai"):
        asyncio.run(adapter.fetch_all())


def test_undated_entries_are_skipped_on_the_next_run(
    sqlite_unit_of_work: UowFactory,
    clock: FrozenClock,
) -> None:
    page = "<h2>New vision model released</h2><p>Now supports video.</p>"
    engine = UpsertEngine(sqlite_unit_of_work, clock=clock)

    first = parse_changelog(page, source_id="openai", page_url=PAGE_URL, max_items=5)
    assert [item.published_at for item in first] == [None]
    assert engine.upsert_all(first).totals.inserted == 1

    clock.advance(hours=6)
    second = parse_changelog(page, source_id="openai", page_url=PAGE_URL, max_items=5)
    report = engine.upsert_all(second)

    assert report.totals.skipped == 1
    assert report.totals.updated == 0
    with sqlite_unit_of_work() as uow:
        record = uow.repositories.records.get_by_natural_key("openai", second[0].url)
    assert record is not None
    assert record.published_at == record.first_seen_at
