"""Trigger endpoint credentials."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var


@dataclass(frozen=True, slots=True)
class TriggerConfig:
    """Shared secret expected as ``Authorization: Bearer <secret>``.

    ``secret=None`` means the trigger surface is unprotected.
    """

    secret: str | None = None

    @property
    def protected(self) -> bool:
        return self.secret is not None


def get_trigger_config() -> TriggerConfig:
    return TriggerConfig(secret=optional_env_var("INGEST_TRIGGER_SECRET"))
