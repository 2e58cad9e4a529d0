"""Keeps the Notion database schema in line with the GitHub project fields."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

import structlog

from integrations.github.graphql import GitHubApiError, GitHubGraphQLClient
from integrations.github.project_items import ProjectField
from integrations.notion.client import NotionApiError, NotionDatabaseClient
from integrations.notion.mappers import build_schema_patch

LOGGER = structlog.get_logger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of a reconciliation pass."""

    created: List[str] = field(default_factory=list)
    available: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def reconcile_schema(
    notion: NotionDatabaseClient,
    project_fields: Iterable[ProjectField],
    *,
    logger: Optional[structlog.BoundLogger] = None,
) -> ReconcileResult:
    """Add every missing property to the database with a single update call.

    Errors are logged and reported on the result; they never propagate.
    """

    log = (logger or LOGGER).bind(component="schema_reconciler")
    try:
        existing = notion.retrieve_property_types()
    except NotionApiError as exc:
        log.error("notion_schema_retrieve_failed", error=str(exc))
        return ReconcileResult(error=str(exc))

    log.info("notion_schema_loaded", properties=sorted(existing))
    missing = build_schema_patch(existing, project_fields)
    if not missing:
        log.info("notion_schema_complete")
        return ReconcileResult(available=dict(existing))

    log.info("notion_schema_adding_properties", properties=sorted(missing))
    try:
        notion.add_properties(missing)
    except NotionApiError as exc:
        log.error("notion_schema_update_failed", error=str(exc))
        return ReconcileResult(available=dict(existing), error=str(exc))

    available = dict(existing)
    available.update({name: str(definition["type"]) for name, definition in missing.items()})
    return ReconcileResult(created=sorted(missing), available=available)


def reconcile_project_schema(
    github: GitHubGraphQLClient,
    notion: NotionDatabaseClient,
    project_id: str,
    *,
    logger: Optional[structlog.BoundLogger] = None,
) -> ReconcileResult:
    """Fetch the project's field definitions and reconcile the database against them."""

    log = logger or LOGGER
    try:
        project_fields = github.fetch_project_fields(project_id)
    except GitHubApiError as exc:
        log.error("project_fields_fetch_failed", project_id=project_id, error=str(exc))
        return ReconcileResult(error=str(exc))
    return reconcile_schema(notion, project_fields, logger=log)


class SchemaGate:
    """Runs reconciliation once per process lifetime.

    The gate only closes after a successful pass, so a failed reconciliation is
    attempted again on the next event. Concurrent first events are serialised.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._initialized = False
        self._available: Dict[str, str] = {}

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def available_types(self) -> Dict[str, str]:
        return dict(self._available)

    def ensure(self, reconcile: Callable[[], ReconcileResult]) -> Optional[ReconcileResult]:
        """Run ``reconcile`` unless a previous pass already succeeded."""

        if self._initialized:
            return None
        with self._lock:
            if self._initialized:
                return None
            result = reconcile()
            if result.available:
                self._available = dict(result.available)
            if result.ok:
                self._initialized = True
            return result
