"""Full re-synchronisation of every item on a GitHub project."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import structlog

from integrations.github.graphql import DEFAULT_MAX_PAGES, GitHubGraphQLClient
from integrations.github.project_items import normalize_item
from integrations.notion.client import NotionApiError

from .upsert import DuplicatePageError, ProjectItemUpserter, UpsertAction, UpsertOutcome

LOGGER = structlog.get_logger(__name__)


@dataclass
class SyncSummary:
    """Summarises the outcome of a synchronisation run."""

    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)

    def record(self, outcome: UpsertOutcome) -> None:
        self.processed += 1
        if outcome is UpsertOutcome.CREATED:
            self.created += 1
        elif outcome is UpsertOutcome.UPDATED:
            self.updated += 1
        else:
            self.skipped += 1

    def record_skipped(self) -> None:
        self.processed += 1
        self.skipped += 1

    def record_failure(self, github_id: str, message: str) -> None:
        self.processed += 1
        self.failed += 1
        self.errors.append({"github_id": github_id, "message": message})

    def as_dict(self) -> Dict[str, object]:
        return {
            "processed": self.processed,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
        }


def sync_project(
    github: GitHubGraphQLClient,
    upserter: ProjectItemUpserter,
    project_id: str,
    *,
    available_types: Optional[Mapping[str, str]] = None,
    max_pages: Optional[int] = DEFAULT_MAX_PAGES,
    logger: Optional[structlog.BoundLogger] = None,
) -> SyncSummary:
    """Upsert every item of ``project_id`` into the Notion database.

    Fetch errors propagate to the caller; a failure on a single item is
    recorded on the summary and the run moves on to the next item.
    """

    log = (logger or LOGGER).bind(component="full_sync", project_id=project_id)
    log.info("project_items_fetch_started")
    project = github.fetch_all_project_items(project_id, max_pages=max_pages)
    log.info("project_items_fetch_completed", items=len(project.items), pages=project.pages)

    summary = SyncSummary()
    for item in project.items:
        if not item.get("content"):
            log.info("item_without_content_skipped", item_id=item.get("id"))
            summary.record_skipped()
            continue

        record = normalize_item(item, project_name=project.project_title)
        try:
            result = upserter.upsert(record, UpsertAction.UPDATE, available_types=available_types)
        except (NotionApiError, DuplicatePageError) as exc:
            log.error("item_sync_failed", github_id=record.github_id, error=str(exc))
            summary.record_failure(record.github_id, str(exc))
            continue
        summary.record(result.outcome)

    log.info("project_sync_completed", **summary.as_dict())
    return summary
