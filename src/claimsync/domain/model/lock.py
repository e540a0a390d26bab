"""Advisory lock row."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class Lock:
    """One row per lock name; held while ``expires_at`` lies in the future.

    Expiry is the only liveness mechanism. A holder that crashes without releasing
    frees the lock once ``expires_at`` passes.
    """

    name: str
    acquired_at: datetime
    expires_at: datetime

    def is_held(self, now: datetime) -> bool:
        return self.expires_at > now
