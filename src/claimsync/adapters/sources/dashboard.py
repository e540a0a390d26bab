"""Read revenue figures off public ("open startup") metrics dashboards."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final
from urllib.parse import urlsplit

import httpx

from claimsync.adapters.http_resilience import ResilientClient
from claimsync.config.http_resilience import RateLimit, ResilienceConfig
from claimsync.domain.claims import EVIDENCE_TYPE_ATTRIBUTE
from claimsync.domain.clock import Clock, utcnow
from claimsync.domain.errors import SourceFetchError
from claimsync.domain.extraction import parse_claim
from claimsync.domain.model import EvidenceType, NormalizedItem
from claimsync.domain.ports.fetching import SourceAdapter

from .html import MAX_TITLE_LENGTH, html_to_text, parse_html, truncate

if TYPE_CHECKING:
    from collections.abc import Callable

    from bs4 import BeautifulSoup

    from claimsync.config.sources import DashboardSourceConfig

log = getLogger(__name__)

_MRR_FIGURE: Final[re.Pattern[str]] = re.compile(
    r"\bMRR\b[:\s]*(?P<figure>\$?\s*\d[\d,]*(?:\.\d+)?\s*(?:k|m|million|thousand)?)\b",
    re.IGNORECASE,
)


def _default_resilience_config() -> ResilienceConfig:
    return ResilienceConfig(
        name="dashboard",
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
    )


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class DashboardAdapter:
    """Emits one monthly snapshot item per dashboard that shows an MRR figure.

    Snapshots are keyed ``<dashboard>#snapshot-YYYY-MM-<cents>``, so each month's
    reading is a separate record, and so is a figure that changes within the month.
    """

    config: DashboardSourceConfig
    resilience: ResilienceConfig = field(default_factory=_default_resilience_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    clock: Clock = utcnow

    @property
    def name(self) -> str:
        return self.config.source_id

    async def fetch_all(self) -> list[NormalizedItem]:
        items: list[NormalizedItem] = []
        failures = 0
        snapshot_at = _month_start(self.clock())
        async with self.client_factory(self.resilience) as client:
            for url in self.config.urls:
                try:
                    markup = await client.get_text(url)
                except httpx.HTTPError as exc:
                    failures += 1
                    log.warning(f"{self.name}: dashboard {url} failed: {exc}")
                    continue
                item = parse_dashboard(
                    markup,
                    source_id=self.config.source_id,
                    dashboard_url=url,
                    snapshot_at=snapshot_at,
                )
                if item is None:
                    log.info(f"{self.name}: no MRR figure on {url}")
                    continue
                items.append(item)

        if self.config.urls and failures == len(self.config.urls):
            raise SourceFetchError(self.name, "every dashboard request failed")
        return items


def parse_dashboard(
    markup: str,
    *,
    source_id: str,
    dashboard_url: str,
    snapshot_at: datetime,
) -> NormalizedItem | None:
    soup = parse_html(markup)
    product = _product_name(soup) or urlsplit(dashboard_url).hostname or dashboard_url
    match = _MRR_FIGURE.search(html_to_text(soup))
    if match is None:
        return None

    figure = "".join(match.group("figure").split())
    if not figure.startswith("$"):
        figure = f"${figure}"
    body_text = f"MRR: {figure}"
    parsed = parse_claim(body_text)
    if parsed is None:
        return None
    return NormalizedItem(
        source_id=source_id,
        title=truncate(f"{product} MRR", MAX_TITLE_LENGTH),
        url=f"{dashboard_url}#snapshot-{snapshot_at:%Y-%m}-{parsed.monthly_cents}",
        body_text=body_text,
        published_at=snapshot_at,
        attributes={
            EVIDENCE_TYPE_ATTRIBUTE: EvidenceType.PUBLIC_DASHBOARD.value,
            "subject_name": product,
            "subject_url": dashboard_url,
        },
    )


def _product_name(soup: BeautifulSoup) -> str | None:
    meta = soup.select_one('meta[property="og:site_name"]')
    if meta is not None:
        content = meta.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
    if soup.title is not None:
        title = soup.title.get_text(" ", strip=True)
        if title:
            return title
    return None


def _month_start(moment: datetime) -> datetime:
    return datetime(moment.year, moment.month, 1, tzinfo=UTC)


if TYPE_CHECKING:
    _adapter_check: SourceAdapter = DashboardAdapter(
        DashboardSourceConfig(source_id="open-startups", urls=())
    )
