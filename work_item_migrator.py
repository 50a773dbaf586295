"""
work_item_migrator.py – The per-item loop shared by the shared-step and
test-case passes.

Every source item is migrated on its own: a failure is logged with the
item's id and title, counted, and the loop moves on to the next item.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

from errors import DuplicateMappingError, ItemMigrationError, PhaseAbortedError
from identity_mapper import IdentityMapper
from models import (
    ItemFailure,
    MigrationReport,
    ProgressUpdate,
    SharedStepRecord,
    SourceItem,
    TestCaseRecord,
    TestStep,
    WorkItemKind,
    WorkItemRef,
)
from providers import DestinationProvider, DraftItem, EditableItem, SourceProvider
from user_translator import UserTranslator

logger = logging.getLogger("tc-migrator")

ProgressCallback = Callable[[ProgressUpdate], None]

_COPIED_FIELDS = (
    "title",
    "description",
    "priority",
    "iteration_path",
    "area_path",
    "state",
    "assigned_to",
    "tags",
)


def rewrite_path(path: str, source_project: str, destination_project: str) -> str:
    """Swap the project name inside an area / iteration path.

    Plain substring replacement: a path that does not contain
    *source_project* is returned untouched.
    """
    if not path or not source_project:
        return path
    return path.replace(source_project, destination_project)


class WorkItemMigrator:
    """Base class for one migration pass over a single work-item kind."""

    kind: WorkItemKind

    def __init__(
        self,
        source: SourceProvider,
        destination: DestinationProvider,
        users: UserTranslator,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._source = source
        self._destination = destination
        self._users = users
        self._on_progress = on_progress
        self._cancel_event = cancel_event

    # ── Public API ──────────────────────────────────────────────────────

    def migrate(
        self,
        source_project: str,
        destination_project: str,
        identity_mapper: IdentityMapper,
    ) -> MigrationReport:
        """Migrate every item of ``self.kind`` from one project to another.

        Per-item failures are recorded in the report.  Anything that stops
        the pass itself (the source query failing mid-way, a duplicate
        mapping) raises ``PhaseAbortedError`` carrying the partial report.
        """
        label = self.kind.label
        report = MigrationReport(kind=self.kind)
        logger.info("** Starting %s migration: %s", label, datetime.now().strftime("%X"))
        started = time.perf_counter()

        try:
            for item in self._source.query_items(source_project, self.kind):
                if self._cancel_event is not None and self._cancel_event.is_set():
                    logger.warning("Cancellation requested; stopping %s migration.", label)
                    report.cancelled = True
                    break

                report.attempted += 1
                logger.info("%s %s: %s", label.capitalize(), item.id, item.title)
                try:
                    record = self._run_item(item, source_project, destination_project, identity_mapper, report)
                except ItemMigrationError as error:
                    report.failed += 1
                    report.failures.append(ItemFailure(WorkItemRef(item.id, item.title), str(error.cause)))
                    logger.error("Error processing %s %s", label, error)
                    logger.debug("Traceback:", exc_info=True)
                else:
                    report.records.append(record)

                if self._on_progress is not None:
                    self._on_progress(ProgressUpdate(self.kind, report.attempted, report.failed))
        except Exception as exc:
            report.error = str(exc)
            logger.error("%s migration aborted: %s", label.capitalize(), exc)
            raise PhaseAbortedError(report, exc) from exc
        finally:
            report.elapsed_seconds = time.perf_counter() - started
            logger.info("** %s migration finished: %s", label.capitalize(), datetime.now().strftime("%X"))
            logger.info(
                "** Successfully migrated %d of %d %ss", report.succeeded, report.attempted, label
            )
            logger.info("** Execution time %.2f seconds", report.elapsed_seconds)
        return report

    def _run_item(
        self,
        item: SourceItem,
        source_project: str,
        destination_project: str,
        identity_mapper: IdentityMapper,
        report: MigrationReport,
    ) -> SharedStepRecord | TestCaseRecord:
        """Migrate one item, wrapping any failure except a duplicate mapping."""
        try:
            return self._migrate_item(item, source_project, destination_project, identity_mapper, report)
        except DuplicateMappingError:
            raise
        except Exception as exc:
            raise ItemMigrationError(item.id, item.title, exc) from exc

    # ── Hooks ───────────────────────────────────────────────────────────

    def _migrate_item(
        self,
        item: SourceItem,
        source_project: str,
        destination_project: str,
        identity_mapper: IdentityMapper,
        report: MigrationReport,
    ) -> SharedStepRecord | TestCaseRecord:
        raise NotImplementedError

    # ── Helpers ─────────────────────────────────────────────────────────

    def _copy_fields(
        self, item: SourceItem, source_project: str, destination_project: str
    ) -> dict[str, Any]:
        """Destination field values for *item*, before the kind-specific extras."""
        return {
            "title": item.title,
            "description": item.description,
            "priority": item.priority,
            "iteration_path": rewrite_path(item.iteration_path, source_project, destination_project),
            "area_path": rewrite_path(item.area_path, source_project, destination_project),
            "state": item.state,
            "assigned_to": self._users.resolve(item.assigned_to),
            "tags": list(item.tags),
        }

    @staticmethod
    def _apply_fields(draft: DraftItem, record: Any) -> None:
        for name in _COPIED_FIELDS:
            setattr(draft, name, getattr(record, name))

    @staticmethod
    def _append_step(editable: EditableItem, title: str, expected_result: str = "") -> TestStep:
        step = editable.create_step()
        step.title = title
        step.expected_result = expected_result
        editable.actions.append(step)
        logger.debug("\tStep: Title = %s, ExpectedResult = %s", title, expected_result)
        return step
