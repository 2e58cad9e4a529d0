"""Command line entry-point for a full project re-synchronisation."""
from __future__ import annotations

import argparse
import sys
from typing import Dict, Optional

import structlog

from integrations.github.app_auth import GitHubAppClientFactory
from integrations.github.graphql import DEFAULT_MAX_PAGES, GitHubApiError, GitHubGraphQLClient
from integrations.notion.client import NotionApiError, NotionDatabaseClient

from .config import Settings
from .dispatch import ClientFactory
from .full_sync import sync_project
from .schema import reconcile_project_schema
from .upsert import ProjectItemUpserter
from .utils import configure_logger, ensure_project_id


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="project-sync",
        description="Synchronise every item of a GitHub project into the Notion database",
    )
    parser.add_argument("installation_id", nargs="?", help="GitHub App installation id to authenticate as")
    parser.add_argument("--project-id", help="Project node id (default: $GITHUB_PROJECT_ID)")
    parser.add_argument(
        "--list-projects",
        action="store_true",
        help="List the projects visible to the installation instead of syncing",
    )
    parser.add_argument("--dry-run", action="store_true", help="Run without writing changes to Notion")
    parser.add_argument(
        "--max-pages",
        type=int,
        default=DEFAULT_MAX_PAGES,
        help=f"Stop with an error after this many item pages (default: {DEFAULT_MAX_PAGES}, 0 or less disables)",
    )
    parser.add_argument("--log-level", help="Logging level (default: $PROJECT_SYNC_LOG_LEVEL or INFO)")
    return parser


def _list_projects(github: GitHubGraphQLClient) -> int:
    projects = github.list_viewer_projects()
    print("Found projects:")
    for project in projects:
        print(f"\nTitle: {project.get('title')}")
        print(f"ID: {project.get('id')}")
        print(f"Number: {project.get('number')}")
        print(f"URL: {project.get('url')}")
    return 0


def _available_types(notion: NotionDatabaseClient, logger: structlog.BoundLogger) -> Dict[str, str]:
    try:
        return notion.retrieve_property_types()
    except NotionApiError as exc:
        logger.warning("notion_schema_unavailable", error=str(exc))
        return {}


def main(
    argv: Optional[list[str]] = None,
    *,
    client_factory: Optional[ClientFactory] = None,
    notion: Optional[NotionDatabaseClient] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.installation_id:
        parser.print_usage()
        return 0

    logger = configure_logger(args.log_level)
    max_pages = args.max_pages if args.max_pages > 0 else None

    try:
        settings = Settings.from_env()
        if client_factory is None:
            app_id, private_key = settings.require_github_app()
            client_factory = GitHubAppClientFactory(app_id, private_key, base_url=settings.github_api_url)
        github = client_factory(args.installation_id)

        if args.list_projects:
            return _list_projects(github)

        project_id = ensure_project_id(args.project_id or settings.github_project_id)
        if notion is None:
            notion = NotionDatabaseClient(
                settings.require_notion_token(),
                database_id=settings.require_database_id(),
            )

        if args.dry_run:
            available = _available_types(notion, logger)
        else:
            available = reconcile_project_schema(github, notion, project_id, logger=logger).available

        upserter = ProjectItemUpserter(notion, dry_run=args.dry_run)
        summary = sync_project(github, upserter, project_id, available_types=available, max_pages=max_pages)
    except GitHubApiError as exc:
        logger.error("sync_failed", error=str(exc))
        return 1
    except RuntimeError as exc:
        logger.error("configuration_error", error=str(exc))
        return 1

    if summary.failed:
        logger.error("sync_completed_with_failures", **summary.as_dict())
        return 1

    logger.info("sync_completed", **summary.as_dict())
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
