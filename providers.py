"""
providers.py – Contracts the migration engine uses to talk to the source and
destination systems.  ``ado_client`` implements them for Azure DevOps; the
test-suite implements them in memory.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from models import Action, SharedStepReference, SourceItem, TestStep, WorkItemKind


class SourceProvider(Protocol):
    def query_items(self, project: str, kind: WorkItemKind) -> Iterable[SourceItem]:
        """Return every work item of *kind* in *project*, in backend order."""
        ...


class DraftItem(Protocol):
    """An unsaved destination work item; fields are plain attributes."""

    title: str
    description: str
    priority: int | None
    iteration_path: str
    area_path: str
    state: str
    assigned_to: str | None
    tags: list[str]
    reflected_source_uri: str

    def save(self) -> int:
        """Persist the item and return its destination id (raises ``SaveError``)."""
        ...


class EditableItem(Protocol):
    """A saved destination item whose action sequence can be edited."""

    id: int
    actions: list[Action]

    def create_step(self) -> TestStep:
        ...

    def create_shared_step_reference(self) -> SharedStepReference:
        ...

    def save(self) -> None:
        ...


class DestinationProvider(Protocol):
    def create_item(self, project: str, kind: WorkItemKind) -> DraftItem:
        ...

    def fetch_item_by_id(self, kind: WorkItemKind, item_id: int) -> EditableItem:
        ...
