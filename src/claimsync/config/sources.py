"""Source adapter configuration, loaded from a TOML file or built-in defaults."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, cast

from .env import optional_env_var
from .errors import ConfigurationError

DEFAULT_CHANGELOG_PAGES: Final[tuple[tuple[str, str], ...]] = (
    ("openai", "https://platform.openai.com/docs/changelog"),
    ("anthropic", "https://docs.anthropic.com/en/release-notes/overview"),
    ("anthropic", "https://docs.anthropic.com/en/api/release-notes"),
    ("google", "https://ai.google.dev/gemini-api/docs/changelog"),
    ("xai", "https://docs.x.ai/changelog"),
    ("perplexity", "https://docs.perplexity.ai/changelog"),
    ("cohere", "https://docs.cohere.com/changelog"),
)

DEFAULT_FEED_INSTANCES: Final[tuple[str, ...]] = (
    "https://nitter.net",
    "https://nitter.it",
    "https://nitter.pussthecat.org",
    "https://nitter.privacydev.net",
)

DEFAULT_FEED_QUERIES: Final[tuple[str, ...]] = (
    '"MRR" ("built with" OR "vibecoded" OR "cursor" OR "claude" OR "shipped in")',
    '"$" "month" ("solo" OR "indie" OR "bootstrapped") ("AI" OR "vibecoded")',
    '"ARR" ("AI" OR "no-code" OR "vibecoding")',
    '"revenue" ("cursor" OR "claude" OR "lovable" OR "replit")',
)


@dataclass(frozen=True, slots=True)
class ChangelogSourceConfig:
    source_id: str
    url: str
    max_items: int = 20


@dataclass(frozen=True, slots=True)
class FeedSearchSourceConfig:
    source_id: str
    instances: tuple[str, ...]
    queries: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class DashboardSourceConfig:
    source_id: str
    urls: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SourcesConfig:
    changelogs: tuple[ChangelogSourceConfig, ...] = field(default_factory=tuple)
    feed_searches: tuple[FeedSearchSourceConfig, ...] = field(default_factory=tuple)
    dashboards: tuple[DashboardSourceConfig, ...] = field(default_factory=tuple)


def default_sources_config() -> SourcesConfig:
    return SourcesConfig(
        changelogs=tuple(
            ChangelogSourceConfig(source_id=source_id, url=url)
            for source_id, url in DEFAULT_CHANGELOG_PAGES
        ),
        feed_searches=(
            FeedSearchSourceConfig(
                source_id="social",
                instances=DEFAULT_FEED_INSTANCES,
                queries=DEFAULT_FEED_QUERIES,
            ),
        ),
    )


def load_sources_config(path: Path) -> SourcesConfig:
    """Parse a sources TOML document.

    Expected layout::

        [[changelog]]
        source_id = "openai"
        url = "https://platform.openai.com/docs/changelog"

        [[feed_search]]
        source_id = "social"
        instances = ["https://nitter.net"]
        queries = ['"MRR" "built with"']

        [[dashboard]]
        source_id = "open-startups"
        urls = ["https://example.com/open"]
    """

    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Sources file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid sources file {path}: {exc}") from exc

    try:
        return SourcesConfig(
            changelogs=tuple(
                ChangelogSourceConfig(
                    source_id=str(entry["source_id"]),
                    url=str(entry["url"]),
                    max_items=int(entry.get("max_items", 20)),
                )
                for entry in _tables(document, "changelog")
            ),
            feed_searches=tuple(
                FeedSearchSourceConfig(
                    source_id=str(entry["source_id"]),
                    instances=_strings(entry, "instances"),
                    queries=_strings(entry, "queries"),
                )
                for entry in _tables(document, "feed_search")
            ),
            dashboards=tuple(
                DashboardSourceConfig(
                    source_id=str(entry["source_id"]),
                    urls=_strings(entry, "urls"),
                )
                for entry in _tables(document, "dashboard")
            ),
        )
    except KeyError as exc:
        raise ConfigurationError(f"Sources file {path} is missing key {exc}") from exc


def get_sources_config() -> SourcesConfig:
    path = optional_env_var("CLAIMSYNC_SOURCES_FILE")
    if path is None:
        return default_sources_config()
    return load_sources_config(Path(path).expanduser())


def _tables(document: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = document.get(key, [])
    if not isinstance(value, list):
        raise ConfigurationError(f"[[{key}]] must be an array of tables")
    return cast(list[dict[str, Any]], value)


def _strings(entry: dict[str, Any], key: str) -> tuple[str, ...]:
    value = entry.get(key, [])
    if not isinstance(value, list):
        raise ConfigurationError(f"{key} must be a list of strings")
    return tuple(str(item) for item in cast(list[object], value))
