"""
testcase_migrator.py – Phase 2: copy every Test Case work item.

Shared-step references are rewritten to the destination ids recorded by
phase 1.  A reference that cannot be resolved becomes a placeholder step
at the same position so a human can repair it later.
"""

from __future__ import annotations

import logging

from identity_mapper import IdentityMapper
from models import (
    MigrationReport,
    SharedStepReference,
    SourceItem,
    TestCaseRecord,
    TestStep,
    WorkItemKind,
)
from providers import EditableItem
from work_item_migrator import WorkItemMigrator

logger = logging.getLogger("tc-migrator")

PLACEHOLDER_TITLE = "PLACEHOLDER: Shared Step (original ID:{shared_step_id})"


def reflected_source_uri(base_uri: str, source_project: str, source_id: int) -> str:
    """Breadcrumb linking a migrated test case back to its origin."""
    return f"{base_uri}//{source_project}/{source_id}"


class TestCaseMigrator(WorkItemMigrator):
    """Migrates test cases, resolving shared-step references via the identity mapper."""

    __test__ = False

    kind = WorkItemKind.TEST_CASE

    def __init__(self, *args, reflected_base_uri: str = "", **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._reflected_base_uri = reflected_base_uri

    def _migrate_item(
        self,
        item: SourceItem,
        source_project: str,
        destination_project: str,
        identity_mapper: IdentityMapper,
        report: MigrationReport,
    ) -> TestCaseRecord:
        record = TestCaseRecord(
            source_id=item.id,
            reflected_source_uri=reflected_source_uri(
                self._reflected_base_uri, source_project, item.id
            ),
            **self._copy_fields(item, source_project, destination_project),
        )

        draft = self._destination.create_item(destination_project, self.kind)
        self._apply_fields(draft, record)
        draft.reflected_source_uri = record.reflected_source_uri
        record.destination_id = draft.save()

        test_case = self._destination.fetch_item_by_id(self.kind, record.destination_id)

        unresolved: list[int] = []
        for action in item.actions:
            match action:
                case TestStep(title=title, expected_result=expected):
                    record.actions.append(self._append_step(test_case, title, expected))
                case SharedStepReference(shared_step_id=source_ref):
                    record.actions.append(
                        self._append_reference(test_case, source_ref, identity_mapper, unresolved)
                    )
                case _:
                    logger.debug("\tSkipping unknown action in test case %s: %r", item.id, action)

        test_case.save()
        report.unresolved_references.extend((item.id, ref) for ref in unresolved)
        return record

    def _append_reference(
        self,
        test_case: EditableItem,
        source_ref: int,
        identity_mapper: IdentityMapper,
        unresolved: list[int],
    ) -> TestStep | SharedStepReference:
        logger.debug("\tShared Step Reference: %s", source_ref)
        mapped_id = identity_mapper.get(source_ref)
        if mapped_id is not None:
            reference = test_case.create_shared_step_reference()
            reference.shared_step_id = mapped_id
            test_case.actions.append(reference)
            return reference

        logger.warning(
            "Shared step %s was not migrated; inserting placeholder step.", source_ref
        )
        unresolved.append(source_ref)
        return self._append_step(test_case, PLACEHOLDER_TITLE.format(shared_step_id=source_ref))
