"""
Repository-layer exceptions for import persistence flows.
"""

from __future__ import annotations


class ImportRepositoryError(Exception):
    """Base exception for import repository failures."""


class ImportNotFoundError(ImportRepositoryError):
    """Raised when a referenced import record does not exist."""

    def __init__(self, import_id: int) -> None:
        super().__init__(f"Import not found: {import_id}")
        self.import_id = import_id


class InvalidStatusTransitionError(ImportRepositoryError):
    """Raised when an import would move backwards or skip a lifecycle state."""

    def __init__(self, *, import_id: int, current: str, requested: str) -> None:
        super().__init__(
            f"Import {import_id} cannot move from '{current}' to '{requested}'."
        )
        self.import_id = import_id
        self.current = current
        self.requested = requested
