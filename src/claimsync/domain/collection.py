"""Concurrent fan-out over source adapters with per-source failure isolation."""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from claimsync.domain.model import NormalizedItem
    from claimsync.domain.ports import SourceAdapter

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SourceFailure:
    source: str
    error: str


@dataclass(slots=True)
class CollectionResult:
    """Items from every adapter that succeeded, in per-adapter order."""

    items: list[NormalizedItem] = field(default_factory=list["NormalizedItem"])
    counts: Counter[str] = field(default_factory=Counter[str])
    failures: list[SourceFailure] = field(default_factory=list[SourceFailure])


async def collect(adapters: Sequence[SourceAdapter]) -> CollectionResult:
    """Run all adapters concurrently. Never raises because of an adapter."""

    outcomes = await asyncio.gather(*(_fetch(adapter) for adapter in adapters))

    result = CollectionResult()
    for adapter, outcome in zip(adapters, outcomes, strict=True):
        if isinstance(outcome, SourceFailure):
            result.failures.append(outcome)
            continue
        result.items.extend(outcome)
        result.counts[adapter.name] += len(outcome)

    log.info(
        "Collected %s items from %s sources (%s failed)",
        len(result.items),
        len(adapters) - len(result.failures),
        len(result.failures),
    )
    return result


async def _fetch(adapter: SourceAdapter) -> list[NormalizedItem] | SourceFailure:
    try:
        items = await adapter.fetch_all()
    except Exception as exc:  # noqa: BLE001
        log.warning("Source %s failed: %s", adapter.name, exc, exc_info=True)
        return SourceFailure(source=adapter.name, error=f"{type(exc).__name__}: {exc}")
    return list(items)
