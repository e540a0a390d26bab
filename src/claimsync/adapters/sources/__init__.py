"""Generic source adapters built from ``SourcesConfig``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .changelog import ChangelogAdapter, parse_changelog
from .dashboard import DashboardAdapter, parse_dashboard
from .feed_search import FeedSearchAdapter, canonical_post_url, parse_search_feed

if TYPE_CHECKING:
    from collections.abc import Callable

    from claimsync.adapters.http_resilience import ResilientClient
    from claimsync.config.http_resilience import ResilienceConfig
    from claimsync.config.sources import SourcesConfig
    from claimsync.domain.ports.fetching import SourceAdapter

    type ClientFactory = Callable[[ResilienceConfig], ResilientClient]


def build_update_adapters(
    config: SourcesConfig,
    *,
    client_factory: ClientFactory | None = None,
) -> list[SourceAdapter]:
    overrides = _overrides(client_factory)
    return [ChangelogAdapter(changelog, **overrides) for changelog in config.changelogs]


def build_claim_adapters(
    config: SourcesConfig,
    *,
    client_factory: ClientFactory | None = None,
) -> list[SourceAdapter]:
    overrides = _overrides(client_factory)
    adapters: list[SourceAdapter] = [
        FeedSearchAdapter(search, **overrides) for search in config.feed_searches
    ]
    adapters.extend(DashboardAdapter(dashboard, **overrides) for dashboard in config.dashboards)
    return adapters


def _overrides(client_factory: ClientFactory | None) -> dict[str, ClientFactory]:
    return {} if client_factory is None else {"client_factory": client_factory}


__all__ = [
    "ChangelogAdapter",
    "DashboardAdapter",
    "FeedSearchAdapter",
    "build_claim_adapters",
    "build_update_adapters",
    "canonical_post_url",
    "parse_changelog",
    "parse_dashboard",
    "parse_search_feed",
]
