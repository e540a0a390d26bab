"""One-time seeding checked against persisted state."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from claimsync.domain.change_detection import UpsertEngine, UpsertReport
    from claimsync.domain.model import NormalizedItem
    from claimsync.domain.ports import UnitOfWorkFactory

log = getLogger(__name__)


def seed_if_empty(
    items: Sequence[NormalizedItem],
    *,
    engine: UpsertEngine,
    unit_of_work_factory: UnitOfWorkFactory,
) -> UpsertReport | None:
    """Upsert ``items`` when the record store is empty.

    Safe to call on every start: the stored row count is the marker, and the
    upserts are idempotent should two processes race past the check.
    """

    if not items:
        return None
    with unit_of_work_factory() as uow:
        existing = uow.repositories.records.count()
    if existing:
        log.debug("Record store holds %s rows; skipping seed", existing)
        return None
    log.info("Seeding %s records into an empty store", len(items))
    return engine.upsert_all(items)
