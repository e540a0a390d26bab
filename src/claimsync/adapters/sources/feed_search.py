"""Search social posts through mirror instances that expose RSS search feeds."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final
from urllib.parse import urlsplit

import feedparser
import httpx

from claimsync.adapters.http_resilience import ResilientClient
from claimsync.config.http_resilience import RateLimit, ResilienceConfig
from claimsync.domain.claims import EVIDENCE_TYPE_ATTRIBUTE
from claimsync.domain.errors import SourceFetchError
from claimsync.domain.extraction import parse_claim
from claimsync.domain.model import EvidenceType, NormalizedItem
from claimsync.domain.ports.fetching import SourceAdapter

from .html import MAX_TITLE_LENGTH, html_to_text, truncate

if TYPE_CHECKING:
    from collections.abc import Callable

    from claimsync.config.sources import FeedSearchSourceConfig

log = getLogger(__name__)

CANONICAL_POST_HOST: Final[str] = "https://x.com"
SEARCH_PATH: Final[str] = "/search/rss"


def _default_resilience_config() -> ResilienceConfig:
    return ResilienceConfig(
        name="feed-search",
        timeout_seconds=15.0,
        ratelimit=RateLimit(max_calls=1, per_seconds=1.0),
        cache=None,
    )


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class _InstanceUnavailableError(RuntimeError):
    pass


@dataclass(slots=True)
class FeedSearchAdapter:
    """Runs each configured query against the mirror instances in order.

    The first instance that yields posts answers the query. Posts without a
    parseable revenue figure are dropped. Mirrors going down is routine, so the
    adapter only fails when no instance answered any query.
    """

    config: FeedSearchSourceConfig
    resilience: ResilienceConfig = field(default_factory=_default_resilience_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    @property
    def name(self) -> str:
        return self.config.source_id

    async def fetch_all(self) -> list[NormalizedItem]:
        items: dict[str, NormalizedItem] = {}
        answered = 0
        async with self.client_factory(self.resilience) as client:
            for query in self.config.queries:
                found = await self._search(client, query)
                if found is None:
                    continue
                answered += 1
                for item in found:
                    items.setdefault(item.url, item)

        if self.config.queries and answered == 0:
            raise SourceFetchError(self.name, "no search instance responded")
        return list(items.values())

    async def _search(self, client: ResilientClient, query: str) -> list[NormalizedItem] | None:
        """Items for ``query``, or ``None`` when every instance failed."""

        responded = False
        for instance in self.config.instances:
            try:
                document = await self._fetch_feed(client, instance, query)
                found = parse_search_feed(document, source_id=self.config.source_id)
            except (httpx.HTTPError, _InstanceUnavailableError) as exc:
                log.warning(f"{self.name}: instance {instance} failed for {query!r}: {exc}")
                continue
            responded = True
            if found:
                log.info(f"{self.name}: {len(found)} posts from {instance} for {query!r}")
                return found
        return [] if responded else None

    async def _fetch_feed(self, client: ResilientClient, instance: str, query: str) -> str:
        url = f"{instance.rstrip('/')}{SEARCH_PATH}"
        response = await client.get(url, params={"f": "tweets", "q": query})
        if response.status_code != httpx.codes.OK:
            raise _InstanceUnavailableError(f"HTTP {response.status_code}")
        return response.text


def parse_search_feed(document: str, *, source_id: str) -> list[NormalizedItem]:
    feed = feedparser.parse(document)
    if feed.bozo and not feed.entries:
        raise _InstanceUnavailableError(f"unreadable feed: {feed.get('bozo_exception')}")

    items: list[NormalizedItem] = []
    for entry in feed.entries:
        link = entry.get("link")
        raw = entry.get("title") or entry.get("summary")
        if not link or not raw:
            continue
        text = html_to_text(raw)
        if parse_claim(text) is None:
            continue

        url = canonical_post_url(link)
        handle = _handle_from_url(url)
        author = entry.get("author") or (f"@{handle}" if handle else None)
        attributes = {EVIDENCE_TYPE_ATTRIBUTE: EvidenceType.SOCIAL_POST.value}
        if author:
            attributes["subject_name"] = author
        if handle:
            attributes["author"] = f"@{handle}"

        items.append(
            NormalizedItem(
                source_id=source_id,
                title=truncate(text, MAX_TITLE_LENGTH),
                url=url,
                body_text=text,
                body_rich=raw,
                published_at=_entry_date(entry),
                external_id=_post_id(url),
                attributes=attributes,
            )
        )
    return items


def canonical_post_url(link: str) -> str:
    """Rewrite a mirror permalink onto the canonical host.

    The same post reached through different mirrors must share one natural key.
    """

    parts = urlsplit(link.strip())
    return f"{CANONICAL_POST_HOST}{parts.path}"


def _handle_from_url(url: str) -> str | None:
    segments = [segment for segment in urlsplit(url).path.split("/") if segment]
    return segments[0] if segments else None


def _post_id(url: str) -> str | None:
    segments = [segment for segment in urlsplit(url).path.split("/") if segment]
    if len(segments) >= 3 and segments[1] == "status":
        return segments[2]
    return None


def _entry_date(entry: feedparser.FeedParserDict) -> datetime | None:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    return datetime(*parsed[:6], tzinfo=UTC)


if TYPE_CHECKING:
    _adapter_check: SourceAdapter = FeedSearchAdapter(
        FeedSearchSourceConfig(source_id="social", instances=(), queries=())
    )
