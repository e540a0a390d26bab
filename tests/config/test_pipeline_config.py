from __future__ import annotations

from datetime import timedelta

import pytest

from claimsync.config import (
    CLAIMS_LOCK_NAME,
    UPDATES_LOCK_NAME,
    ConfigurationError,
    PipelineConfig,
    get_claims_pipeline_config,
    get_updates_pipeline_config,
)


def test_default_pipeline_configs(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "UPDATES_LOCK_TTL_SECONDS",
        "UPDATES_MAX_RUN_SECONDS",
        "CLAIMS_LOCK_TTL_SECONDS",
        "CLAIMS_MAX_RUN_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)

    updates = get_updates_pipeline_config()
    claims = get_claims_pipeline_config()

    assert updates.lock_name == UPDATES_LOCK_NAME
    assert updates.lock_ttl == timedelta(minutes=5)
    assert claims.lock_name == CLAIMS_LOCK_NAME
    assert claims.lock_ttl == timedelta(minutes=30)
    assert updates.lock_name != claims.lock_name


def test_ttl_overrides_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UPDATES_LOCK_TTL_SECONDS", "600")
    monkeypatch.setenv("UPDATES_MAX_RUN_SECONDS", "120")

    assert get_updates_pipeline_config().lock_ttl == timedelta(minutes=10)


def test_ttl_must_outlive_the_run() -> None:
    with pytest.raises(ConfigurationError, match="must be at least"):
        PipelineConfig(lock_name="ingest-test", lock_ttl_seconds=90, max_run_seconds=60)


def test_ttl_equal_to_minimum_is_accepted() -> None:
    config = PipelineConfig(lock_name="ingest-test", lock_ttl_seconds=120, max_run_seconds=60)

    assert config.lock_ttl == timedelta(seconds=120)
