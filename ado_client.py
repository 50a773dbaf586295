"""
ado_client.py – Azure DevOps implementations of the source and destination
providers.

Reads go through the official `azure-devops` Python SDK (WIQL + batched
work-item fetches); writes use raw REST JSON-patch calls via `requests`
so the `bypassRules` flag can be set when creating historical items.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from typing import Any
from urllib.parse import quote

import requests
from azure.devops.connection import Connection
from azure.devops.v7_0.work_item_tracking.models import Wiql
from msrest.authentication import BasicAuthentication

from errors import SaveError
from models import (
    Action,
    SharedStepReference,
    SourceItem,
    TestStep,
    UnknownAction,
    WorkItemKind,
)

logger = logging.getLogger("tc-migrator")

API_VERSION = "api-version=7.1"
STEPS_FIELD = "Microsoft.VSTS.TCM.Steps"

# attribute name on DraftItem → ADO field reference name
FIELD_REFS = {
    "title": "System.Title",
    "description": "System.Description",
    "priority": "Microsoft.VSTS.Common.Priority",
    "iteration_path": "System.IterationPath",
    "area_path": "System.AreaPath",
    "state": "System.State",
    "assigned_to": "System.AssignedTo",
    "tags": "System.Tags",
}


# ── XML helpers for the TCM Steps field ─────────────────────────────────

def _steps_xml(actions: list[Action]) -> str:
    """Build the XML blob that ADO stores in Microsoft.VSTS.TCM.Steps."""
    root = ET.Element("steps", id="0")
    last_id = 1
    for action in actions:
        match action:
            case TestStep(title=title, expected_result=expected):
                last_id += 1
                step_type = "ValidateStep" if expected else "ActionStep"
                el = ET.SubElement(root, "step", id=str(last_id), type=step_type)
                ET.SubElement(el, "parameterizedString", isformatted="true").text = title
                ET.SubElement(el, "parameterizedString", isformatted="true").text = expected
                ET.SubElement(el, "description")
            case SharedStepReference(shared_step_id=ref):
                last_id += 1
                ET.SubElement(root, "compref", id=str(last_id), ref=str(ref))
            case _:
                logger.debug("Not encoding unsupported action %r", action)
    root.set("last", str(last_id))
    return ET.tostring(root, encoding="unicode")


def _parse_steps_xml(xml_str: str | None) -> list[Action]:
    """Parse the ADO TCM Steps XML into an ordered action list."""
    if not xml_str:
        return []
    actions: list[Action] = []
    try:
        root = ET.fromstring(xml_str)
    except ET.ParseError:
        logger.warning("Could not parse TCM Steps XML; treating as empty.")
        return actions
    _collect_actions(root, actions)
    return actions


def _collect_actions(parent: ET.Element, actions: list[Action]) -> None:
    """Append the actions under *parent* in document order.

    A ``compref`` may wrap the steps that follow the shared step, so its
    children are walked right after the reference itself.
    """
    for el in parent:
        if el.tag == "step":
            params = el.findall("parameterizedString")
            title = (params[0].text or "") if len(params) > 0 else ""
            expected = (params[1].text or "") if len(params) > 1 else ""
            actions.append(TestStep(title=title, expected_result=expected))
        elif el.tag == "compref":
            try:
                actions.append(SharedStepReference(shared_step_id=int(el.get("ref", ""))))
            except ValueError:
                logger.warning("Shared step reference without a valid ref: %s", el.attrib)
                actions.append(UnknownAction(kind="compref"))
            _collect_actions(el, actions)
        else:
            actions.append(UnknownAction(kind=el.tag))


def _split_tags(raw: str | None) -> list[str]:
    return [t.strip() for t in (raw or "").split(";") if t.strip()]


def _display_name(value: Any) -> str | None:
    """AssignedTo comes back as an identity object or a plain string."""
    if isinstance(value, dict):
        return value.get("displayName") or value.get("uniqueName")
    return value or None


def _source_item(work_item: Any) -> SourceItem:
    f: dict[str, Any] = work_item.fields or {}
    priority = f.get("Microsoft.VSTS.Common.Priority")
    return SourceItem(
        id=work_item.id,
        title=f.get("System.Title", ""),
        description=f.get("System.Description", "") or "",
        priority=int(priority) if priority is not None else None,
        state=f.get("System.State", ""),
        iteration_path=f.get("System.IterationPath", ""),
        area_path=f.get("System.AreaPath", ""),
        assigned_to=_display_name(f.get("System.AssignedTo")),
        tags=_split_tags(f.get("System.Tags")),
        actions=_parse_steps_xml(f.get(STEPS_FIELD)),
    )


def _connect(org_url: str, pat: str, timeout: float):
    creds = BasicAuthentication("", pat)
    connection = Connection(base_url=org_url, creds=creds)
    wit = connection.clients.get_work_item_tracking_client()
    wit.config.connection.timeout = timeout
    return wit


# ── Source ──────────────────────────────────────────────────────────────

class AdoSourceProvider:
    """Reads shared steps and test cases from the source collection."""

    BATCH_SIZE = 200  # get_work_items limit

    def __init__(self, org_url: str, pat: str, timeout: float = 30) -> None:
        self._wit = _connect(org_url, pat, timeout)

    def query_items(self, project: str, kind: WorkItemKind) -> Iterator[SourceItem]:
        """Yield every work item of *kind* in *project*."""
        escaped = project.replace("'", "''")
        query = (
            "SELECT [System.Id] FROM WorkItems "
            f"WHERE [System.WorkItemType] = '{kind.value}' "
            f"AND [System.TeamProject] = '{escaped}'"
        )
        result = self._wit.query_by_wiql(Wiql(query=query))
        ids = [ref.id for ref in result.work_items or []]
        logger.info("Found %d %ss in source project '%s'", len(ids), kind.label, project)

        for start in range(0, len(ids), self.BATCH_SIZE):
            batch_ids = ids[start:start + self.BATCH_SIZE]
            batch = self._wit.get_work_items(ids=batch_ids, expand="All", error_policy="Omit")
            # "Omit" returns None in place of items that could not be read
            omitted = [item_id for item_id, work_item in zip(batch_ids, batch) if work_item is None]
            if omitted:
                logger.warning(
                    "Skipped %d unreadable %ss: %s",
                    len(omitted),
                    kind.label,
                    ", ".join(str(i) for i in omitted),
                )
            for work_item in batch:
                if work_item is not None:
                    yield _source_item(work_item)


# ── Destination ─────────────────────────────────────────────────────────

class AdoDraftItem:
    """An unsaved destination work item."""

    def __init__(self, provider: AdoDestinationProvider, project: str, kind: WorkItemKind) -> None:
        self._provider = provider
        self._project = project
        self.kind = kind
        self.id: int | None = None
        self.title = ""
        self.description = ""
        self.priority: int | None = None
        self.iteration_path = ""
        self.area_path = ""
        self.state = ""
        self.assigned_to: str | None = None
        self.tags: list[str] = []
        self.reflected_source_uri = ""

    def patch_document(self, reflected_field: str) -> list[dict[str, Any]]:
        """JSON-patch body for every populated field."""
        values: dict[str, Any] = {}
        for attr, ref in FIELD_REFS.items():
            value = getattr(self, attr)
            if attr == "tags":
                value = "; ".join(value)
            if value is None or value == "":
                continue
            values[ref] = value
        if self.reflected_source_uri:
            values[reflected_field] = self.reflected_source_uri
        return [
            {"op": "add", "path": f"/fields/{ref}", "value": value}
            for ref, value in values.items()
        ]

    def save(self) -> int:
        document = self.patch_document(self._provider.reflected_field)
        self.id = self._provider.create(self._project, self.kind, document)
        logger.info("Created %s #%s  →  '%s'", self.kind.value, self.id, self.title)
        return self.id


class AdoEditableItem:
    """A saved destination item whose step sequence is rewritten on save."""

    def __init__(self, provider: AdoDestinationProvider, kind: WorkItemKind, item_id: int) -> None:
        self._provider = provider
        self.kind = kind
        self.id = item_id
        self.actions: list[Action] = []

    def create_step(self) -> TestStep:
        return TestStep()

    def create_shared_step_reference(self) -> SharedStepReference:
        return SharedStepReference()

    def save(self) -> None:
        document = [{"op": "add", "path": f"/fields/{STEPS_FIELD}", "value": _steps_xml(self.actions)}]
        self._provider.update(self.id, document)
        logger.debug("Saved %d actions on %s #%s", len(self.actions), self.kind.value, self.id)


class AdoDestinationProvider:
    """Creates shared steps and test cases in the target collection."""

    def __init__(
        self,
        org_url: str,
        pat: str,
        timeout: float = 30,
        bypass_rules: bool = True,
        reflected_field: str = "Custom.ReflectedWorkitemId",
    ) -> None:
        self._wit = _connect(org_url, pat, timeout)
        self._org_base = org_url.rstrip("/")
        self._timeout = timeout
        self._bypass = "&bypassRules=true" if bypass_rules else ""
        self.reflected_field = reflected_field

        # REST session for JSON-patch writes
        self._session = requests.Session()
        self._session.auth = ("", pat)
        self._patch_header = {"Content-Type": "application/json-patch+json"}

    # ── Provider API ────────────────────────────────────────────────────

    def create_item(self, project: str, kind: WorkItemKind) -> AdoDraftItem:
        return AdoDraftItem(self, project, kind)

    def fetch_item_by_id(self, kind: WorkItemKind, item_id: int) -> AdoEditableItem:
        wi = self._wit.get_work_item(item_id)
        actual = (wi.fields or {}).get("System.WorkItemType")
        if actual != kind.value:
            raise SaveError(f"Work item {item_id} is a '{actual}', expected '{kind.value}'")
        return AdoEditableItem(self, kind, wi.id)

    # ── REST calls ──────────────────────────────────────────────────────

    def create(self, project: str, kind: WorkItemKind, document: list[dict[str, Any]]) -> int:
        url = (
            f"{self._org_base}/{quote(project)}/_apis/wit/workitems/"
            f"${quote(kind.value)}?{API_VERSION}{self._bypass}"
        )
        return self._patch(url, document)["id"]

    def update(self, item_id: int, document: list[dict[str, Any]]) -> None:
        url = f"{self._org_base}/_apis/wit/workitems/{item_id}?{API_VERSION}{self._bypass}"
        self._patch(url, document)

    def _patch(self, url: str, document: list[dict[str, Any]]) -> dict[str, Any]:
        try:
            resp = self._session.patch(
                url, json=document, headers=self._patch_header, timeout=self._timeout
            )
            resp.raise_for_status()
        except requests.HTTPError as exc:
            detail = exc.response.text[:500] if exc.response is not None else ""
            raise SaveError(f"{exc} {detail}".strip()) from exc
        except requests.RequestException as exc:
            raise SaveError(str(exc)) from exc
        return resp.json()
