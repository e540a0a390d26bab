"""Ports for fetching items from external sources."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from claimsync.domain.model import NormalizedItem


@runtime_checkable
class SourceAdapter(Protocol):
    """One external source.

    ``fetch_all`` returns an empty list when the source has nothing to offer and
    raises only on genuine failures.
    """

    @property
    def name(self) -> str: ...

    async def fetch_all(self) -> list[NormalizedItem]: ...


__all__ = ["SourceAdapter"]
