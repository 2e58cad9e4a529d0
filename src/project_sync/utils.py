"""Utility helpers shared by the webhook server and the batch CLI."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import structlog

LOG_LEVEL_ENV = "PROJECT_SYNC_LOG_LEVEL"


def configure_logger(level: Optional[str] = None) -> structlog.BoundLogger:
    """Configure and return a structlog logger instance.

    The configuration is idempotent and safe to call multiple times. It
    produces JSON logs that are easy to ingest by log aggregation platforms.
    """
    if not structlog.is_configured():
        log_level_name = (level or os.environ.get(LOG_LEVEL_ENV, "INFO")).upper()
        log_level = getattr(logging, log_level_name, logging.INFO)
        logging.basicConfig(level=log_level)
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            cache_logger_on_first_use=True,
        )
    return structlog.get_logger("project_sync")


def ensure_notion_token(explicit_token: Optional[str] = None) -> str:
    """Resolve the Notion API token required for authentication."""
    token = explicit_token or os.environ.get("NOTION_API_KEY") or os.environ.get("NOTION_TOKEN")
    if not token:
        raise RuntimeError(
            "A Notion integration token is required. Set NOTION_API_KEY "
            "(or NOTION_TOKEN) in the environment."
        )
    return token


def ensure_database_id(explicit_database_id: Optional[str] = None) -> str:
    """Resolve the target Notion database identifier."""
    database_id = explicit_database_id or os.environ.get("NOTION_DATABASE_ID")
    if not database_id:
        raise RuntimeError("A Notion database ID is required. Set NOTION_DATABASE_ID in the environment.")
    return database_id


def ensure_project_id(explicit_project_id: Optional[str] = None) -> str:
    """Resolve the node id of the GitHub project being mirrored."""
    project_id = explicit_project_id or os.environ.get("GITHUB_PROJECT_ID")
    if not project_id:
        raise RuntimeError(
            "A GitHub project node id is required. Set GITHUB_PROJECT_ID "
            "(run `project-sync --list-projects <installation-id>` to find it)."
        )
    return project_id


def load_private_key(inline_key: Optional[str] = None, key_path: Optional[str] = None) -> Optional[str]:
    """Return the GitHub App private key from an inline value or a PEM file.

    Inline keys may carry literal ``\\n`` sequences, as is common when the key
    is stored in a single-line environment variable.
    """
    if inline_key:
        return inline_key.replace("\\n", "\n")
    if key_path:
        path = Path(key_path)
        if not path.exists():
            raise RuntimeError(f"GitHub App private key not found at: {path}")
        return path.read_text(encoding="utf-8")
    return None
