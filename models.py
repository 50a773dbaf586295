"""
models.py – Plain data-classes shared across every module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class WorkItemKind(str, Enum):
    """Work-item types handled by the migrator (value = ADO type name)."""

    SHARED_STEP = "Shared Steps"
    TEST_CASE = "Test Case"

    @property
    def label(self) -> str:
        return "shared step" if self is WorkItemKind.SHARED_STEP else "test case"


@dataclass
class WorkItemRef:
    """Identity of a work item inside one system."""

    id: int
    title: str


# ── Actions ─────────────────────────────────────────────────────────────

@dataclass
class TestStep:
    """A single title + expected-result pair inside a test case or shared step."""

    __test__ = False

    title: str = ""
    expected_result: str = ""


@dataclass
class SharedStepReference:
    """Points at a shared step by id (id space depends on the owning system)."""

    shared_step_id: int = 0


@dataclass
class UnknownAction:
    """Any action kind the migrator does not understand."""

    kind: str = ""


Action = Union[TestStep, SharedStepReference, UnknownAction]


# ── Source side ─────────────────────────────────────────────────────────

@dataclass
class SourceItem:
    """A shared step or test case as read from the source system."""

    id: int
    title: str
    description: str = ""
    priority: int | None = None
    state: str = ""
    iteration_path: str = ""
    area_path: str = ""
    assigned_to: str | None = None
    tags: list[str] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)


# ── Migration records ───────────────────────────────────────────────────

@dataclass
class SharedStepRecord:
    """Destination-side view of one migrated shared step."""

    source_id: int
    title: str
    description: str = ""
    priority: int | None = None
    iteration_path: str = ""
    area_path: str = ""
    state: str = ""
    assigned_to: str | None = None
    tags: list[str] = field(default_factory=list)
    steps: list[TestStep] = field(default_factory=list)
    destination_id: int | None = None


@dataclass
class TestCaseRecord:
    """Destination-side view of one migrated test case."""

    __test__ = False

    source_id: int
    title: str
    description: str = ""
    priority: int | None = None
    iteration_path: str = ""
    area_path: str = ""
    state: str = ""
    assigned_to: str | None = None
    tags: list[str] = field(default_factory=list)
    reflected_source_uri: str = ""
    actions: list[Action] = field(default_factory=list)
    destination_id: int | None = None


# ── Reporting ───────────────────────────────────────────────────────────

@dataclass
class ItemFailure:
    """One source item that could not be migrated."""

    item: WorkItemRef
    error: str

    @property
    def source_id(self) -> int:
        return self.item.id

    @property
    def title(self) -> str:
        return self.item.title


@dataclass
class ProgressUpdate:
    """Posted after every item processed by either migrator."""

    kind: WorkItemKind
    processed: int
    failed: int

    @property
    def message(self) -> str:
        return f"Processing {self.kind.label} {self.processed} ({self.failed})"


@dataclass
class MigrationReport:
    """Summary of one migration phase."""

    kind: WorkItemKind
    attempted: int = 0
    failed: int = 0
    elapsed_seconds: float = 0.0
    cancelled: bool = False
    error: str = ""
    failures: list[ItemFailure] = field(default_factory=list)
    records: list[SharedStepRecord | TestCaseRecord] = field(default_factory=list)
    # (source test case id, source shared step id) pairs replaced by placeholders
    unresolved_references: list[tuple[int, int]] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return self.attempted - self.failed


@dataclass
class RunSummary:
    """Outcome of a full two-phase run."""

    shared_steps: MigrationReport | None = None
    test_cases: MigrationReport | None = None
    identity_map: dict[int, int] = field(default_factory=dict)
    error: str = ""

    @property
    def cancelled(self) -> bool:
        return any(r is not None and r.cancelled for r in (self.shared_steps, self.test_cases))
