"""Scrape provider changelog / release-notes pages into capability updates."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx

from claimsync.adapters.http_resilience import ResilientClient
from claimsync.config.http_resilience import RateLimit, ResilienceConfig
from claimsync.domain.errors import SourceFetchError
from claimsync.domain.model import NormalizedItem
from claimsync.domain.ports.fetching import SourceAdapter

from .html import (
    MAX_BODY_LENGTH,
    MAX_TITLE_LENGTH,
    html_to_text,
    parse_date,
    parse_html,
    slugify,
    truncate,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from datetime import datetime

    from bs4 import Tag

    from claimsync.config.sources import ChangelogSourceConfig

log = getLogger(__name__)

ENTRY_SELECTOR: Final[str] = "article, .changelog-entry, .release-note, [data-changelog-entry]"
HEADING_SELECTOR: Final[str] = "h1, h2, h3, h4"
SECTION_HEADINGS: Final[frozenset[str]] = frozenset({"h2", "h3"})
DATE_SELECTOR: Final[str] = "time, .date, [datetime]"
MIN_TITLE_LENGTH: Final[int] = 6
_SKIPPED_TITLES: Final[frozenset[str]] = frozenset(
    {"overview", "table of contents", "on this page"}
)


def _default_resilience_config() -> ResilienceConfig:
    return ResilienceConfig(
        name="changelog",
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
    )


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class ChangelogAdapter:
    """One changelog page. Each entry becomes an item keyed by ``page#slug``."""

    config: ChangelogSourceConfig
    resilience: ResilienceConfig = field(default_factory=_default_resilience_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    @property
    def name(self) -> str:
        return self.config.source_id

    async def fetch_all(self) -> list[NormalizedItem]:
        async with self.client_factory(self.resilience) as client:
            try:
                markup = await client.get_text(self.config.url)
            except httpx.HTTPError as exc:
                raise SourceFetchError(self.name, f"GET {self.config.url} failed: {exc}") from exc

        items = parse_changelog(
            markup,
            source_id=self.config.source_id,
            page_url=self.config.url,
            max_items=self.config.max_items,
        )
        log.info(f"{self.name}: parsed {len(items)} entries from {self.config.url}")
        return items


def parse_changelog(
    markup: str,
    *,
    source_id: str,
    page_url: str,
    max_items: int,
) -> list[NormalizedItem]:
    """Turn a changelog page into items.

    Entry containers (``article`` and friends) are preferred. Pages without them
    are split on ``h2``/``h3`` headings instead.
    """

    soup = parse_html(markup)
    entries = list(_container_entries(soup)) or list(_heading_entries(soup))

    items: list[NormalizedItem] = []
    used_anchors: set[str] = set()
    for title, content, body_rich, published_at in entries:
        if len(items) >= max_items:
            break
        anchor = _unique_anchor(slugify(title), used_anchors)
        item = NormalizedItem(
            source_id=source_id,
            title=truncate(title, MAX_TITLE_LENGTH),
            url=f"{page_url}#{anchor}",
            body_text=truncate(content, MAX_BODY_LENGTH) or title,
            body_rich=body_rich,
            published_at=published_at,
            external_id=f"{source_id}-{anchor}",
        )
        items.append(item)
    return items


type _Entry = tuple[str, str, str, datetime | None]


def _container_entries(soup: Tag) -> Iterator[_Entry]:
    for element in soup.select(ENTRY_SELECTOR):
        heading = element.select_one(HEADING_SELECTOR)
        if heading is None:
            continue
        title = heading.get_text(" ", strip=True)
        if not _usable_title(title):
            continue
        published_at = _entry_date(element) or parse_date(title)
        heading.extract()
        yield title, html_to_text(element), str(element), published_at


def _heading_entries(soup: Tag) -> Iterator[_Entry]:
    for heading in soup.select("h2, h3"):
        title = heading.get_text(" ", strip=True)
        if not _usable_title(title):
            continue
        fragments: list[str] = []
        texts: list[str] = []
        for sibling in heading.find_next_siblings():
            if sibling.name in SECTION_HEADINGS:
                break
            fragments.append(str(sibling))
            text = sibling.get_text("\n", strip=True)
            if text:
                texts.append(text)
        yield title, "\n".join(texts), "".join(fragments), parse_date(title)


def _entry_date(element: Tag) -> datetime | None:
    marker = element.select_one(DATE_SELECTOR)
    if marker is None:
        return None
    attribute = marker.get("datetime")
    if isinstance(attribute, str):
        parsed = parse_date(attribute)
        if parsed is not None:
            return parsed
    return parse_date(marker.get_text(" ", strip=True))


def _usable_title(title: str) -> bool:
    return len(title) >= MIN_TITLE_LENGTH and title.lower() not in _SKIPPED_TITLES


def _unique_anchor(anchor: str, used: set[str]) -> str:
    candidate = anchor or "entry"
    suffix = 2
    while candidate in used:
        candidate = f"{anchor or 'entry'}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


if TYPE_CHECKING:
    _adapter_check: SourceAdapter = ChangelogAdapter(
        ChangelogSourceConfig(source_id="openai", url="")
    )
