"""Unit-of-work doubles for storage failure paths."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Self

from claimsync.domain.errors import StorageError

if TYPE_CHECKING:
    from claimsync.domain.ports import IngestRepositories


class UnreachableUnitOfWork:
    """Unit of work whose backing store is down."""

    @property
    def repositories(self) -> IngestRepositories:
        raise StorageError("connection refused")

    def __enter__(self) -> Self:
        raise StorageError("connection refused")

    def __exit__(self, *exc_info: object) -> Literal[False]:
        return False

    def commit(self) -> None:
        raise StorageError("connection refused")

    def rollback(self) -> None:
        raise StorageError("connection refused")
