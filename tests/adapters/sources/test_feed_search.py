from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import httpx
import pytest

from claimsync.adapters.sources import FeedSearchAdapter, canonical_post_url, parse_search_feed
from claimsync.config.sources import FeedSearchSourceConfig
from claimsync.domain.errors import SourceFetchError
from tests.helpers.http import make_client_factory

SEARCH_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Search results</title>
    <link>https://mirror.example/search</link>
    <description>Search feed</description>
    <item>
      <title>Just hit $10k MRR with my app built with Cursor</title>
      <dc:creator>@maker</dc:creator>
      <link>https://mirror.example/maker/status/1790000000000000001#m</link>
      <pubDate>Wed, 01 May 2024 09:30:00 GMT</pubDate>
    </item>
    <item>
      <title>Shipping a new onboarding flow today</title>
      <dc:creator>@maker</dc:creator>
      <link>https://mirror.example/maker/status/1790000000000000002#m</link>
      <pubDate>Wed, 01 May 2024 10:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""

EMPTY_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Search results</title></channel></rss>
"""


def _config(*instances: str, queries: tuple[str, ...] = ('"MRR"',)) -> FeedSearchSourceConfig:
    return FeedSearchSourceConfig(source_id="social", instances=instances, queries=queries)


def test_parse_search_feed_keeps_posts_with_figures() -> None:
    items = parse_search_feed(SEARCH_FEED, source_id="social")

    assert len(items) == 1
    post = items[0]
    assert post.source_id == "social"
    assert post.url == "https://x.com/maker/status/1790000000000000001"
    assert post.external_id == "1790000000000000001"
    assert post.body_text == "Just hit $10k MRR with my app built with Cursor"
    assert post.published_at == datetime(2024, 5, 1, 9, 30, tzinfo=UTC)
    assert post.attributes == {
        "evidence_type": "social_post",
        "subject_name": "@maker",
        "author": "@maker",
    }


def test_post_without_a_date_has_no_published_at() -> None:
    feed = SEARCH_FEED.replace("<pubDate>Wed, 01 May 2024 09:30:00 GMT</pubDate>", "")

    items = parse_search_feed(feed, source_id="social")

    assert [item.published_at for item in items] == [None]
    assert parse_search_feed(feed, source_id="social") == items


def test_canonical_post_url_drops_mirror_host_and_fragment() -> None:
    assert (
        canonical_post_url(" https://nitter.example/dev/status/42#m ")
        == "https://x.com/dev/status/42"
    )


def test_adapter_queries_next_instance_when_one_is_down() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.host == "down.example":
            return httpx.Response(404)
        return httpx.Response(200, text=SEARCH_FEED)

    adapter = FeedSearchAdapter(
        _config("https://down.example", "https://up.example/"),
        client_factory=make_client_factory(handler),
    )

    items = asyncio.run(adapter.fetch_all())

    assert [item.external_id for item in items] == ["1790000000000000001"]
    assert [request.url.host for request in requests] == ["down.example", "up.example"]
    assert requests[1].url.path == "/search/rss"
    assert requests[1].url.params["f"] == "tweets"
    assert requests[1].url.params["q"] == '"MRR"'


def test_unreadable_feed_counts_as_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "blocked.example":
            return httpx.Response(200, text="<html><body>Rate limited")
        return httpx.Response(200, text=SEARCH_FEED)

    adapter = FeedSearchAdapter(
        _config("https://blocked.example", "https://up.example"),
        client_factory=make_client_factory(handler),
    )

    assert len(asyncio.run(adapter.fetch_all())) == 1


def test_same_post_from_several_queries_is_returned_once() -> None:
    adapter = FeedSearchAdapter(
        _config("https://up.example", queries=('"MRR"', '"ARR"')),
        client_factory=make_client_factory(lambda _request: httpx.Response(200, text=SEARCH_FEED)),
    )

    assert len(asyncio.run(adapter.fetch_all())) == 1


def test_empty_answers_are_not_failures() -> None:
    adapter = FeedSearchAdapter(
        _config("https://quiet.example"),
        client_factory=make_client_factory(lambda _request: httpx.Response(200, text=EMPTY_FEED)),
    )

    assert asyncio.run(adapter.fetch_all()) == []


def test_adapter_fails_when_no_instance_responds() -> None:
    adapter = FeedSearchAdapter(
        _config("https://a.example", "https://b.example"),
        client_factory=make_client_factory(lambda _request: httpx.Response(404)),
    )

    with pytest.raises(SourceFetchError, match="no search instance responded"):
        asyncio.run(adapter.fetch_all())
