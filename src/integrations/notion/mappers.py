"""Utilities for mapping GitHub project items onto the mirrored Notion database.

The database is expected to expose a title property plus the eight
infrastructure properties listed in :data:`INFRASTRUCTURE_PROPERTIES`. Custom
fields of the GitHub project are mirrored on top of those, and their values are
only written when the database is known to carry a property of the same name
and type.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from integrations.github.project_items import FieldValue, ProjectField, ProjectItemRecord

RICH_TEXT_LIMIT = 2000
SELECT_OPTION_COLOR = "default"


@dataclass(frozen=True)
class NotionPropertyNames:
    """Names of the core Notion properties written for every item."""

    title: str = "Title"
    issue_number: str = "Issue Number"
    status: str = "Project Status"
    added_at: str = "Added to Project"
    updated_at: str = "Status Updated"
    repository: str = "Repository"
    project_name: str = "Project Name"
    github_url: str = "GitHub URL"
    github_id: str = "GitHub ID"


PROPERTY_NAMES = NotionPropertyNames()

INFRASTRUCTURE_PROPERTIES: Dict[str, Dict[str, Any]] = {
    PROPERTY_NAMES.issue_number: {"type": "number", "number": {}},
    PROPERTY_NAMES.status: {"type": "select", "select": {"options": []}},
    PROPERTY_NAMES.added_at: {"type": "date", "date": {}},
    PROPERTY_NAMES.updated_at: {"type": "date", "date": {}},
    PROPERTY_NAMES.repository: {"type": "rich_text", "rich_text": {}},
    PROPERTY_NAMES.project_name: {"type": "rich_text", "rich_text": {}},
    PROPERTY_NAMES.github_url: {"type": "url", "url": {}},
    PROPERTY_NAMES.github_id: {"type": "rich_text", "rich_text": {}},
}


def _build_title_payload(title: str) -> Dict[str, Any]:
    return {"title": [{"text": {"content": title[:RICH_TEXT_LIMIT]}}]}


def _build_rich_text_payload(content: Optional[str]) -> Dict[str, Any]:
    return {"rich_text": [{"text": {"content": (content or "")[:RICH_TEXT_LIMIT]}}]}


def _build_number_payload(number: Optional[float]) -> Dict[str, Any]:
    return {"number": number}


def _clean_select_name(name: str) -> str:
    # Notion rejects select option names containing commas
    return name.replace(",", " ")[:100]


def _build_select_payload(name: Optional[str]) -> Dict[str, Any]:
    if not name:
        return {"select": None}
    return {"select": {"name": _clean_select_name(name)}}


def _build_date_payload(start: Optional[str]) -> Dict[str, Any]:
    if not start:
        return {"date": None}
    return {"date": {"start": start}}


def _build_url_payload(url: Optional[str]) -> Dict[str, Any]:
    return {"url": url or None}


_VALUE_BUILDERS = {
    "select": _build_select_payload,
    "date": _build_date_payload,
    "number": _build_number_payload,
    "rich_text": _build_rich_text_payload,
}


def build_property_value(notion_type: str, value: Any) -> Optional[Dict[str, Any]]:
    """Return the property payload for ``value`` or ``None`` for unsupported types."""

    builder = _VALUE_BUILDERS.get(notion_type)
    if builder is None:
        return None
    return builder(value)


def build_property_schema(project_field: ProjectField) -> Optional[Dict[str, Any]]:
    """Return the database property definition mirroring ``project_field``.

    Title fields map onto the database's existing title property and produce
    ``None``.
    """

    notion_type = project_field.notion_type
    if notion_type == "title":
        return None
    if notion_type == "select":
        # Cleaning can collapse two options into one name
        names = list(dict.fromkeys(_clean_select_name(option) for option in project_field.options))
        return {
            "type": "select",
            "select": {"options": [{"name": name, "color": SELECT_OPTION_COLOR} for name in names]},
        }
    return {"type": notion_type, notion_type: {}}


def build_schema_patch(
    existing_properties: Iterable[str],
    project_fields: Iterable[ProjectField],
) -> Dict[str, Dict[str, Any]]:
    """Compute the properties missing from the database.

    The result covers the infrastructure properties and the custom project
    fields that are not present yet; it is empty when nothing is missing.
    """

    existing = set(existing_properties)
    missing: Dict[str, Dict[str, Any]] = {}

    for name, definition in INFRASTRUCTURE_PROPERTIES.items():
        if name not in existing:
            missing[name] = definition

    for project_field in project_fields:
        if project_field.name in existing or project_field.name in missing:
            continue
        definition = build_property_schema(project_field)
        if definition is not None:
            missing[project_field.name] = definition

    return missing


def _core_property_names() -> List[str]:
    return [PROPERTY_NAMES.title, *INFRASTRUCTURE_PROPERTIES]


def build_custom_properties(
    field_values: Mapping[str, FieldValue],
    available_types: Mapping[str, str],
) -> Dict[str, Any]:
    """Build payloads for custom field values whose property exists with a matching type."""

    core = set(_core_property_names())
    properties: Dict[str, Any] = {}
    for name, field_value in field_values.items():
        if name in core or available_types.get(name) != field_value.notion_type:
            continue
        payload = build_property_value(field_value.notion_type, field_value.value)
        if payload is not None:
            properties[name] = payload
    return properties


def build_page_properties(
    record: ProjectItemRecord,
    *,
    available_types: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Create the Notion property payload for a normalised project item."""

    names = PROPERTY_NAMES
    properties: Dict[str, Any] = {}
    if available_types:
        properties.update(build_custom_properties(record.field_values, available_types))

    properties.update(
        {
            names.title: _build_title_payload(record.title or "Untitled"),
            names.issue_number: _build_number_payload(record.issue_number),
            names.status: _build_select_payload(record.status),
            names.added_at: _build_date_payload(record.added_at),
            names.updated_at: _build_date_payload(record.updated_at),
            names.repository: _build_rich_text_payload(record.repository),
            names.project_name: _build_rich_text_payload(record.project_name),
            names.github_url: _build_url_payload(record.url),
            names.github_id: _build_rich_text_payload(record.github_id),
        }
    )
    return properties


def build_github_id_filter(github_id: str) -> Dict[str, Any]:
    """Return the database query filter matching pages by composite key."""

    return {
        "property": PROPERTY_NAMES.github_id,
        "rich_text": {"equals": github_id},
    }
