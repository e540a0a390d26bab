"""Ingestion pipeline settings: lock names, TTLs and run budgets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from .env import env_seconds
from .errors import ConfigurationError

UPDATES_LOCK_NAME: Final[str] = "ingest-updates"
CLAIMS_LOCK_NAME: Final[str] = "ingest-claims"

DEFAULT_UPDATES_LOCK_TTL_SECONDS: Final[float] = 5 * 60
DEFAULT_UPDATES_MAX_RUN_SECONDS: Final[float] = 60
DEFAULT_CLAIMS_LOCK_TTL_SECONDS: Final[float] = 30 * 60
DEFAULT_CLAIMS_MAX_RUN_SECONDS: Final[float] = 15 * 60

LOCK_SAFETY_MARGIN_SECONDS: Final[float] = 60


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Lock settings for one ingestion pipeline.

    ``max_run_seconds`` is the wall-clock limit of the hosting invocation. A run cut
    off by that limit never releases its lock, so the TTL has to outlive it.
    """

    lock_name: str
    lock_ttl_seconds: float
    max_run_seconds: float

    def __post_init__(self) -> None:
        minimum = self.max_run_seconds + LOCK_SAFETY_MARGIN_SECONDS
        if self.lock_ttl_seconds < minimum:
            raise ConfigurationError(
                f"Lock TTL for {self.lock_name!r} ({self.lock_ttl_seconds}s) must be at least "
                f"the max run duration plus {LOCK_SAFETY_MARGIN_SECONDS}s ({minimum}s)"
            )

    @property
    def lock_ttl(self) -> timedelta:
        return timedelta(seconds=self.lock_ttl_seconds)


def get_updates_pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        lock_name=UPDATES_LOCK_NAME,
        lock_ttl_seconds=env_seconds("UPDATES_LOCK_TTL_SECONDS", DEFAULT_UPDATES_LOCK_TTL_SECONDS),
        max_run_seconds=env_seconds("UPDATES_MAX_RUN_SECONDS", DEFAULT_UPDATES_MAX_RUN_SECONDS),
    )


def get_claims_pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        lock_name=CLAIMS_LOCK_NAME,
        lock_ttl_seconds=env_seconds("CLAIMS_LOCK_TTL_SECONDS", DEFAULT_CLAIMS_LOCK_TTL_SECONDS),
        max_run_seconds=env_seconds("CLAIMS_MAX_RUN_SECONDS", DEFAULT_CLAIMS_MAX_RUN_SECONDS),
    )
