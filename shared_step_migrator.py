"""
shared_step_migrator.py – Phase 1: copy every Shared Steps work item and
record its new id in the identity map.

Test cases migrated afterwards look their shared-step references up in
that map, so this pass has to finish before the test-case pass starts.
"""

from __future__ import annotations

import logging

from identity_mapper import IdentityMapper
from models import MigrationReport, SharedStepRecord, SourceItem, TestStep, WorkItemKind
from work_item_migrator import WorkItemMigrator

logger = logging.getLogger("tc-migrator")


class SharedStepMigrator(WorkItemMigrator):
    """Migrates shared steps and fills the identity mapper."""

    kind = WorkItemKind.SHARED_STEP

    def _migrate_item(
        self,
        item: SourceItem,
        source_project: str,
        destination_project: str,
        identity_mapper: IdentityMapper,
        report: MigrationReport,
    ) -> SharedStepRecord:
        record = SharedStepRecord(
            source_id=item.id,
            **self._copy_fields(item, source_project, destination_project),
        )

        draft = self._destination.create_item(destination_project, self.kind)
        self._apply_fields(draft, record)
        record.destination_id = draft.save()

        # The draft handle cannot edit steps; reopen the saved item.
        shared_step = self._destination.fetch_item_by_id(self.kind, record.destination_id)

        for action in item.actions:
            match action:
                case TestStep(title=title, expected_result=expected):
                    self._append_step(shared_step, title, expected)
                    record.steps.append(TestStep(title, expected))
                case _:
                    logger.debug("\tSkipping non-step action in shared step %s: %r", item.id, action)

        shared_step.save()
        identity_mapper.put(item.id, record.destination_id)
        logger.debug(
            "Shared step %s migrated as %s with %d steps",
            item.id,
            record.destination_id,
            len(record.steps),
        )
        return record
