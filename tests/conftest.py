from typing import Any, Dict, List, Optional

import pytest

from integrations.github.graphql import GitHubApiError, ProjectItems
from integrations.github.project_items import ProjectField
from integrations.notion.client import NotionApiError


def _item(
    number: int = 42,
    *,
    owner: str = "acme",
    repo: str = "widgets",
    title: Optional[str] = "Fix the widget",
    status: Optional[str] = "In Progress",
    project_title: Optional[str] = "Roadmap",
    item_id: Optional[str] = None,
    extra_values: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    field_values: List[Dict[str, Any]] = []
    if status is not None:
        field_values.append({"name": status, "field": {"name": "Status"}})
    field_values.extend(extra_values or [])
    node: Dict[str, Any] = {
        "id": item_id or f"PVTI_{number}",
        "content": {
            "number": number,
            "title": title,
            "body": "Details",
            "url": f"https://github.com/{owner}/{repo}/issues/{number}",
            "repository": {"name": repo, "owner": {"login": owner}},
        },
        "fieldValues": {"nodes": field_values},
        "createdAt": "2024-01-01T10:00:00Z",
        "updatedAt": "2024-01-02T11:00:00Z",
    }
    if project_title is not None:
        node["project"] = {"title": project_title, "number": 3}
    return node


@pytest.fixture
def make_item():
    return _item


class FakeNotion:
    """In-memory stand-in for :class:`NotionDatabaseClient`."""

    def __init__(self, property_types: Optional[Dict[str, str]] = None) -> None:
        self.database_id = "db-1"
        self.property_types = dict(property_types or {"Title": "title"})
        self.pages: Dict[str, Dict[str, Any]] = {}
        self.schema_updates: List[Dict[str, Any]] = []
        self.calls: List[str] = []
        self.fail_retrieve = False
        self.fail_schema_update = False
        self.fail_writes = False

    # schema ------------------------------------------------------------
    def retrieve_property_types(self) -> Dict[str, str]:
        self.calls.append("retrieve")
        if self.fail_retrieve:
            raise NotionApiError("retrieve failed")
        return dict(self.property_types)

    def add_properties(self, properties: Dict[str, Any]) -> None:
        self.calls.append("add_properties")
        if self.fail_schema_update:
            raise NotionApiError("schema update failed")
        self.schema_updates.append(dict(properties))
        for name, definition in properties.items():
            self.property_types[name] = definition["type"]

    # pages -------------------------------------------------------------
    @staticmethod
    def _github_id(properties: Dict[str, Any]) -> Optional[str]:
        rich_text = (properties.get("GitHub ID") or {}).get("rich_text") or []
        return rich_text[0]["text"]["content"] if rich_text else None

    def find_pages_by_github_id(self, github_id: str) -> List[Dict[str, Any]]:
        self.calls.append("query")
        return [
            {"id": page_id}
            for page_id, page in self.pages.items()
            if not page["archived"] and self._github_id(page["properties"]) == github_id
        ]

    def create_page(self, properties: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append("create")
        if self.fail_writes:
            raise NotionApiError("create failed")
        page_id = f"page-{len(self.pages) + 1}"
        self.pages[page_id] = {"properties": dict(properties), "archived": False}
        return {"id": page_id}

    def update_page(self, page_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append("update")
        if self.fail_writes:
            raise NotionApiError("update failed")
        self.pages[page_id]["properties"] = dict(properties)
        return {"id": page_id}

    def archive_page(self, page_id: str) -> Dict[str, Any]:
        self.calls.append("archive")
        self.pages[page_id]["archived"] = True
        return {"id": page_id}

    @property
    def live_pages(self) -> Dict[str, Dict[str, Any]]:
        return {page_id: page for page_id, page in self.pages.items() if not page["archived"]}


class FakeGitHub:
    """In-memory stand-in for :class:`GitHubGraphQLClient`."""

    def __init__(
        self,
        *,
        items: Optional[List[Dict[str, Any]]] = None,
        fields: Optional[List[ProjectField]] = None,
        project_title: str = "Roadmap",
    ) -> None:
        self.items = list(items or [])
        self.fields = list(fields or [])
        self.project_title = project_title
        self.field_fetches = 0
        self.fail_fields = False
        self.fail_items = False

    def fetch_project_fields(self, project_id: str) -> List[ProjectField]:
        self.field_fetches += 1
        if self.fail_fields:
            raise GitHubApiError("fields unavailable")
        return list(self.fields)

    def fetch_project_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        if self.fail_items:
            raise GitHubApiError("item unavailable")
        for item in self.items:
            if item.get("id") == item_id:
                return item
        return None

    def fetch_all_project_items(self, project_id: str, *, max_pages: Optional[int] = None) -> ProjectItems:
        return ProjectItems(project_title=self.project_title, items=list(self.items), pages=1)

    def list_viewer_projects(self, *, first: int = 20) -> List[Dict[str, Any]]:
        return [{"id": "PVT_1", "title": "Roadmap", "number": 3, "url": "https://github.com/orgs/acme/projects/3"}]


@pytest.fixture
def notion() -> FakeNotion:
    return FakeNotion()


@pytest.fixture
def fake_github_cls():
    return FakeGitHub
