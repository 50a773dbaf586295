"""
errors.py – Exception hierarchy for the migrator.
"""

from __future__ import annotations


class MigratorError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(MigratorError):
    """Settings are missing or malformed."""


class ItemMigrationError(MigratorError):
    """A single shared step or test case could not be migrated."""

    def __init__(self, source_id: int, title: str, cause: BaseException) -> None:
        super().__init__(f"({source_id}:{title}): {cause}")
        self.source_id = source_id
        self.title = title
        self.cause = cause


class SaveError(MigratorError):
    """The destination system rejected a create or save call."""


class DuplicateMappingError(MigratorError):
    """A source shared step was mapped twice in the same run."""

    def __init__(self, source_id: int, existing: int, new: int) -> None:
        super().__init__(
            f"Shared step {source_id} already mapped to {existing}; refusing to map to {new}"
        )
        self.source_id = source_id


class PhaseAbortedError(MigratorError):
    """A migration pass stopped before visiting every source item.

    ``report`` holds what the pass did up to that point.
    """

    def __init__(self, report, cause: BaseException) -> None:
        super().__init__(str(cause))
        self.report = report
        self.cause = cause
