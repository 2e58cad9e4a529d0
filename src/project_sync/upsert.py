"""Create, update or archive the Notion page mirroring a project item."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

import structlog

from integrations.github.project_items import ProjectItemRecord
from integrations.notion.client import NotionDatabaseClient
from integrations.notion.mappers import build_page_properties

LOGGER = structlog.get_logger(__name__)


class DuplicatePageError(RuntimeError):
    """Raised when more than one page carries the same GitHub ID."""


class UpsertAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class UpsertOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    ARCHIVED = "archived"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class UpsertResult:
    outcome: UpsertOutcome
    github_id: str
    page_id: Optional[str] = None


class ProjectItemUpserter:
    """Matches project items to pages by GitHub ID and writes the changes."""

    def __init__(
        self,
        notion: NotionDatabaseClient,
        *,
        dry_run: bool = False,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self._notion = notion
        self._dry_run = dry_run
        self._logger = (logger or LOGGER).bind(component="upserter")

    def find_page_id(self, github_id: str) -> Optional[str]:
        pages = self._notion.find_pages_by_github_id(github_id)
        if len(pages) > 1:
            page_ids = [str(page.get("id")) for page in pages]
            self._logger.error("duplicate_pages_found", github_id=github_id, page_ids=page_ids)
            raise DuplicatePageError(f"{len(pages)} Notion pages share GitHub ID {github_id}: {', '.join(page_ids)}")
        if pages:
            return str(pages[0]["id"])
        return None

    def upsert(
        self,
        record: ProjectItemRecord,
        action: UpsertAction = UpsertAction.UPDATE,
        *,
        available_types: Optional[Mapping[str, str]] = None,
    ) -> UpsertResult:
        """Make the database reflect ``record`` for the given action."""

        github_id = record.github_id
        page_id = self.find_page_id(github_id)

        if action is UpsertAction.DELETE:
            if page_id is None:
                self._logger.info("delete_without_page", github_id=github_id)
                return UpsertResult(UpsertOutcome.UNCHANGED, github_id)
            if self._dry_run:
                self._logger.info("dry_run_archive", github_id=github_id, page_id=page_id)
                return UpsertResult(UpsertOutcome.SKIPPED, github_id, page_id)
            self._notion.archive_page(page_id)
            self._logger.info("notion_page_archived", github_id=github_id, page_id=page_id)
            return UpsertResult(UpsertOutcome.ARCHIVED, github_id, page_id)

        properties = build_page_properties(record, available_types=available_types)
        if self._dry_run:
            self._logger.info("dry_run_write", github_id=github_id, page_id=page_id, properties=sorted(properties))
            return UpsertResult(UpsertOutcome.SKIPPED, github_id, page_id)

        if page_id:
            self._notion.update_page(page_id, properties)
            self._logger.info("notion_page_updated", github_id=github_id, page_id=page_id)
            return UpsertResult(UpsertOutcome.UPDATED, github_id, page_id)

        page = self._notion.create_page(properties)
        page_id = str(page.get("id")) if page.get("id") else None
        self._logger.info("notion_page_created", github_id=github_id, page_id=page_id)
        return UpsertResult(UpsertOutcome.CREATED, github_id, page_id)
