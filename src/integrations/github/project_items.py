"""Helpers for turning GitHub Projects (v2) GraphQL nodes into flat records."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

NO_STATUS = "No Status"
STATUS_FIELD_NAME = "Status"
DEFAULT_PROJECT_NAME = "GitHub Project"

FIELD_TYPE_MAP: Dict[str, str] = {
    "SINGLE_SELECT": "select",
    "DATE": "date",
    "NUMBER": "number",
    "TITLE": "title",
    "TEXT": "rich_text",
}
DEFAULT_NOTION_TYPE = "rich_text"


@dataclass(frozen=True)
class ProjectField:
    """Definition of a custom field on a GitHub project."""

    name: str
    data_type: str
    options: List[str] = field(default_factory=list)

    @property
    def notion_type(self) -> str:
        return map_field_type(self.data_type)


@dataclass(frozen=True)
class FieldValue:
    """Value of a single project field on an item, tagged with its Notion type."""

    notion_type: str
    value: Any


@dataclass(frozen=True)
class ProjectItemRecord:
    """Normalised representation of a project item ready for Notion."""

    title: str
    issue_number: int
    status: str
    added_at: Optional[str]
    updated_at: Optional[str]
    repository: str
    project_name: str
    url: Optional[str]
    github_id: str
    body: Optional[str] = None
    field_values: Dict[str, FieldValue] = field(default_factory=dict)


def map_field_type(data_type: Optional[str]) -> str:
    """Translate a GitHub field ``dataType`` into a Notion property type."""

    if data_type is None:
        return DEFAULT_NOTION_TYPE
    return FIELD_TYPE_MAP.get(data_type, DEFAULT_NOTION_TYPE)


def build_github_id(owner: str, repository: str, number: int) -> str:
    """Return the ``owner/repo#number`` key used to match Notion pages."""

    return f"{owner}/{repository}#{number}"


def _field_value_nodes(item: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    field_values = item.get("fieldValues") or {}
    return [node for node in field_values.get("nodes") or [] if node]


def _field_name(node: Mapping[str, Any]) -> Optional[str]:
    field_info = node.get("field") or {}
    return field_info.get("name")


def extract_status(item: Mapping[str, Any]) -> str:
    """Return the value of the ``Status`` field, or ``"No Status"``."""

    for node in _field_value_nodes(item):
        if _field_name(node) == STATUS_FIELD_NAME and node.get("name"):
            return str(node["name"])
    return NO_STATUS


def extract_field_values(item: Mapping[str, Any]) -> Dict[str, FieldValue]:
    """Collect typed custom field values keyed by field name.

    Only single select, date, number and text values are recognised. The first
    value wins when a field name shows up twice.
    """

    values: Dict[str, FieldValue] = {}
    for node in _field_value_nodes(item):
        name = _field_name(node)
        if not name or name in values:
            continue
        if node.get("name") is not None:
            values[name] = FieldValue("select", str(node["name"]))
        elif node.get("date") is not None:
            values[name] = FieldValue("date", str(node["date"]))
        elif node.get("number") is not None:
            values[name] = FieldValue("number", node["number"])
        elif node.get("text") is not None:
            values[name] = FieldValue("rich_text", str(node["text"]))
    return values


def parse_project_fields(nodes: Iterable[Optional[Mapping[str, Any]]]) -> List[ProjectField]:
    """Build :class:`ProjectField` definitions from GraphQL field nodes.

    Nodes lacking a name or a data type (fragments GitHub could not resolve)
    are dropped.
    """

    fields: List[ProjectField] = []
    for node in nodes:
        if not node or not node.get("name") or not node.get("dataType"):
            continue
        options = [str(option["name"]) for option in node.get("options") or [] if option.get("name")]
        fields.append(ProjectField(name=str(node["name"]), data_type=str(node["dataType"]), options=options))
    return fields


def normalize_item(item: Mapping[str, Any], *, project_name: Optional[str] = None) -> ProjectItemRecord:
    """Flatten a ``ProjectV2Item`` node into a :class:`ProjectItemRecord`.

    Items without linked issue content have to be filtered out by the caller.
    """

    content = item.get("content")
    if not content:
        raise ValueError("Project item has no linked issue content")

    repository = content.get("repository") or {}
    owner = (repository.get("owner") or {}).get("login", "")
    repo_name = repository.get("name", "")
    number = content.get("number")

    project = item.get("project") or {}
    resolved_project_name = project.get("title") or project_name or DEFAULT_PROJECT_NAME

    return ProjectItemRecord(
        title=content.get("title") or "Untitled",
        issue_number=number,
        status=extract_status(item),
        added_at=item.get("createdAt"),
        updated_at=item.get("updatedAt"),
        repository=repo_name,
        project_name=resolved_project_name,
        url=content.get("url"),
        github_id=build_github_id(owner, repo_name, number),
        body=content.get("body"),
        field_values=extract_field_values(item),
    )
