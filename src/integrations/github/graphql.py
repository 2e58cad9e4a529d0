"""Minimal GitHub GraphQL client for reading Projects (v2) data."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional

import requests
import structlog

from .project_items import ProjectField, parse_project_fields

GITHUB_API_BASE_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30
ITEMS_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 1000

LOGGER = structlog.get_logger(__name__)


class GitHubApiError(RuntimeError):
    """Raised when the GitHub API returns an error."""


class PaginationLimitExceeded(GitHubApiError):
    """Raised when a project keeps reporting more pages past the configured cap."""


_FIELD_VALUES_FRAGMENT = """
          fieldValues(first: 20) {
            nodes {
              ... on ProjectV2ItemFieldSingleSelectValue {
                name
                field { ... on ProjectV2FieldCommon { name } }
              }
              ... on ProjectV2ItemFieldDateValue {
                date
                field { ... on ProjectV2FieldCommon { name } }
              }
              ... on ProjectV2ItemFieldNumberValue {
                number
                field { ... on ProjectV2FieldCommon { name } }
              }
              ... on ProjectV2ItemFieldTextValue {
                text
                field { ... on ProjectV2FieldCommon { name } }
              }
            }
          }
"""

_ISSUE_CONTENT_FRAGMENT = """
          content {
            ... on Issue {
              number
              title
              body
              url
              repository {
                name
                owner { login }
              }
            }
          }
"""

PROJECT_FIELDS_QUERY = """
query($projectId: ID!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      fields(first: 50) {
        nodes {
          ... on ProjectV2Field {
            id
            name
            dataType
          }
          ... on ProjectV2IterationField {
            id
            name
            dataType
          }
          ... on ProjectV2SingleSelectField {
            id
            name
            dataType
            options { id name }
          }
        }
      }
    }
  }
}
"""

PROJECT_ITEM_QUERY = (
    """
query($itemId: ID!) {
  node(id: $itemId) {
    ... on ProjectV2Item {
      id
"""
    + _ISSUE_CONTENT_FRAGMENT
    + """
      project { title number }
"""
    + _FIELD_VALUES_FRAGMENT
    + """
      createdAt
      updatedAt
    }
  }
}
"""
)

PROJECT_ITEMS_QUERY = (
    """
query($projectId: ID!, $cursor: String, $pageSize: Int!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      title
      items(first: $pageSize, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          id
"""
    + _ISSUE_CONTENT_FRAGMENT
    + _FIELD_VALUES_FRAGMENT
    + """
          createdAt
          updatedAt
        }
      }
    }
  }
}
"""
)

VIEWER_PROJECTS_QUERY = """
query($first: Int!) {
  viewer {
    projectsV2(first: $first) {
      nodes { id title number url }
    }
  }
}
"""


@dataclass
class ProjectItemsPage:
    """One page of items returned by the project items query."""

    project_title: Optional[str]
    items: List[Mapping[str, Any]] = field(default_factory=list)
    has_next_page: bool = False
    end_cursor: Optional[str] = None


@dataclass
class ProjectItems:
    """All items of a project, aggregated across pages."""

    project_title: Optional[str]
    items: List[Mapping[str, Any]] = field(default_factory=list)
    pages: int = 0


class GitHubGraphQLClient:
    """Small wrapper around the GitHub GraphQL endpoint."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = GITHUB_API_BASE_URL,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": "github-notion-project-sync",
            }
        )
        self._url = f"{base_url.rstrip('/')}/graphql"
        self._logger = LOGGER.bind(component="github_graphql")

    def execute(self, query: str, variables: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Run ``query`` and return its ``data`` member."""

        try:
            response = self._session.post(
                self._url,
                json={"query": query, "variables": dict(variables or {})},
                timeout=DEFAULT_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise GitHubApiError(f"GitHub GraphQL request failed: {exc}") from exc
        if response.status_code >= 400:
            raise GitHubApiError(f"GitHub GraphQL request failed ({response.status_code}): {response.text}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise GitHubApiError(f"GitHub GraphQL response was not JSON: {response.text[:200]}") from exc
        if payload.get("errors"):
            messages = "; ".join(str(error.get("message")) for error in payload["errors"])
            raise GitHubApiError(f"GitHub GraphQL query returned errors: {messages}")
        return payload.get("data") or {}

    # ------------------------------------------------------------------
    def fetch_project_fields(self, project_id: str) -> List[ProjectField]:
        data = self.execute(PROJECT_FIELDS_QUERY, {"projectId": project_id})
        node = data.get("node") or {}
        nodes = (node.get("fields") or {}).get("nodes") or []
        return parse_project_fields(nodes)

    def fetch_project_item(self, item_id: str) -> Optional[Mapping[str, Any]]:
        data = self.execute(PROJECT_ITEM_QUERY, {"itemId": item_id})
        return data.get("node")

    def fetch_project_items_page(self, project_id: str, cursor: Optional[str] = None) -> ProjectItemsPage:
        data = self.execute(
            PROJECT_ITEMS_QUERY,
            {"projectId": project_id, "cursor": cursor, "pageSize": ITEMS_PAGE_SIZE},
        )
        project = data.get("node")
        if not project:
            raise GitHubApiError(f"Project {project_id} was not found or is not accessible")
        items = project.get("items") or {}
        page_info = items.get("pageInfo") or {}
        return ProjectItemsPage(
            project_title=project.get("title"),
            items=[node for node in items.get("nodes") or [] if node],
            has_next_page=bool(page_info.get("hasNextPage")),
            end_cursor=page_info.get("endCursor"),
        )

    def iter_project_item_pages(
        self,
        project_id: str,
        *,
        max_pages: Optional[int] = DEFAULT_MAX_PAGES,
    ) -> Iterator[ProjectItemsPage]:
        """Yield item pages until GitHub reports there are no more."""

        cursor: Optional[str] = None
        fetched = 0
        while True:
            if max_pages is not None and fetched >= max_pages:
                raise PaginationLimitExceeded(
                    f"Project {project_id} still reports more items after {max_pages} pages"
                )
            page = self.fetch_project_items_page(project_id, cursor)
            fetched += 1
            yield page
            if not page.has_next_page:
                return
            cursor = page.end_cursor

    def fetch_all_project_items(
        self,
        project_id: str,
        *,
        max_pages: Optional[int] = DEFAULT_MAX_PAGES,
    ) -> ProjectItems:
        result = ProjectItems(project_title=None)
        for page in self.iter_project_item_pages(project_id, max_pages=max_pages):
            result.project_title = result.project_title or page.project_title
            result.items.extend(page.items)
            result.pages += 1
            self._logger.info(
                "project_items_fetched",
                project=page.project_title,
                fetched=len(result.items),
                page=result.pages,
            )
        return result

    def list_viewer_projects(self, *, first: int = 20) -> List[Mapping[str, Any]]:
        data = self.execute(VIEWER_PROJECTS_QUERY, {"first": first})
        viewer = data.get("viewer") or {}
        return [node for node in (viewer.get("projectsV2") or {}).get("nodes") or [] if node]
