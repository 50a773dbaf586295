"""
orchestrator.py – Runs the two migration passes in the background.

Shared steps are migrated first; the test-case pass is gated on the
completion of that future because test cases resolve their shared-step
references through the identity map it fills.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor

from errors import PhaseAbortedError
from identity_mapper import IdentityMapper
from models import MigrationReport, ProgressUpdate, RunSummary, WorkItemKind
from providers import DestinationProvider, SourceProvider
from shared_step_migrator import SharedStepMigrator
from status import COMPLETE_MARKER, LoggingStatusSink, StatusSink
from testcase_migrator import TestCaseMigrator
from user_translator import UserTranslator

logger = logging.getLogger("tc-migrator")


class MigrationOrchestrator:
    """Sequences shared-step and test-case migration for one project pair.

    Every call to :meth:`start` gets its own identity map and cancellation
    flag, so one orchestrator can drive several runs one after another.
    """

    def __init__(
        self,
        source: SourceProvider,
        destination: DestinationProvider,
        user_map: Mapping[str, str] | None = None,
        status_sink: StatusSink | None = None,
        reflected_base_uri: str = "",
    ) -> None:
        self._source = source
        self._destination = destination
        self._users = UserTranslator(user_map)
        self._sink = status_sink or LoggingStatusSink()
        self._reflected_base_uri = reflected_base_uri
        self._cancel_event = threading.Event()
        self._last_update: ProgressUpdate | None = None
        self.identity_mapper = IdentityMapper()

    # ── Public API ──────────────────────────────────────────────────────

    def start(self, source_project: str, destination_project: str) -> Future[RunSummary]:
        """Schedule a fresh run in the background and return its future."""
        self._cancel_event = threading.Event()
        self._last_update = None
        self.identity_mapper = IdentityMapper()
        mapper = self.identity_mapper

        shared_steps = SharedStepMigrator(
            self._source,
            self._destination,
            self._users,
            on_progress=self._post_progress,
            cancel_event=self._cancel_event,
        )
        test_cases = TestCaseMigrator(
            self._source,
            self._destination,
            self._users,
            on_progress=self._post_progress,
            cancel_event=self._cancel_event,
            reflected_base_uri=self._reflected_base_uri,
        )

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tc-migrator")
        phase1 = executor.submit(shared_steps.migrate, source_project, destination_project, mapper)
        phase2 = executor.submit(
            self._after_shared_steps, phase1, test_cases, mapper, source_project, destination_project
        )
        executor.shutdown(wait=False)
        return phase2

    def run(self, source_project: str, destination_project: str) -> RunSummary:
        """Blocking variant of :meth:`start`."""
        return self.start(source_project, destination_project).result()

    def cancel(self) -> None:
        """Stop the current run at the next item boundary."""
        logger.info("Cancellation requested.")
        self._cancel_event.set()

    # ── Internals ───────────────────────────────────────────────────────

    def _after_shared_steps(
        self,
        phase1: Future[MigrationReport],
        test_cases: TestCaseMigrator,
        mapper: IdentityMapper,
        source_project: str,
        destination_project: str,
    ) -> RunSummary:
        summary = RunSummary()
        try:
            summary.shared_steps = phase1.result()
            if summary.shared_steps.cancelled:
                logger.warning("Shared step migration was cancelled; skipping test cases.")
            else:
                summary.test_cases = test_cases.migrate(source_project, destination_project, mapper)
        except PhaseAbortedError as exc:
            if exc.report.kind is WorkItemKind.SHARED_STEP:
                summary.shared_steps = exc.report
            else:
                summary.test_cases = exc.report
            self._record_error(summary, exc)
        except Exception as exc:
            self._record_error(summary, exc)
        finally:
            summary.identity_map = mapper.as_dict()
            self._sink.post_status(self._completion_message())
        return summary

    @staticmethod
    def _record_error(summary: RunSummary, exc: Exception) -> None:
        summary.error = str(exc)
        logger.error("Migration aborted: %s", exc)
        logger.debug("Traceback:", exc_info=True)

    def _post_progress(self, update: ProgressUpdate) -> None:
        self._last_update = update
        self._sink.post_status(update.message)

    def _completion_message(self) -> str:
        if self._last_update is None:
            return COMPLETE_MARKER
        return f"{self._last_update.message}. {COMPLETE_MARKER}"
