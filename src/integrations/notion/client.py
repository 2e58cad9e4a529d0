"""Thin wrapper around the official Notion SDK for a single database."""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog
from notion_client import Client
from notion_client.errors import APIResponseError, HTTPResponseError, RequestTimeoutError

from .mappers import build_github_id_filter

LOGGER = structlog.get_logger(__name__)


class NotionApiError(RuntimeError):
    """Raised when the Notion API returns an error."""


class NotionDatabaseClient:
    """Performs the database and page calls used by the sync pipeline.

    SDK exceptions are converted into :class:`NotionApiError` so callers only
    need to handle one error type.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        database_id: str,
        client: Optional[Client] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        if client is None and not token:
            raise RuntimeError("A Notion integration token is required.")
        self._client = client or Client(auth=token)
        self._database_id = database_id
        self._logger = (logger or LOGGER).bind(component="notion_client", database_id=database_id)

    @property
    def database_id(self) -> str:
        return self._database_id

    def _call(self, description: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        try:
            return func(**kwargs)
        except APIResponseError as error:
            self._logger.warning(
                "notion_api_call_failed",
                call=description,
                error_code=getattr(error, "code", "unknown"),
                message=str(error),
            )
            raise NotionApiError(f"Failed to {description}: {error}") from error
        except (HTTPResponseError, RequestTimeoutError) as error:
            self._logger.warning("notion_api_call_failed", call=description, message=str(error))
            raise NotionApiError(f"Failed to {description}: {error}") from error

    def retrieve_property_types(self) -> Dict[str, str]:
        """Return a mapping of property name to property type for the database."""

        database = self._call(
            "retrieve Notion database",
            self._client.databases.retrieve,
            database_id=self._database_id,
        )
        properties: Mapping[str, Mapping[str, Any]] = database.get("properties", {})
        return {name: str(definition.get("type")) for name, definition in properties.items()}

    def add_properties(self, properties: Mapping[str, Any]) -> None:
        self._call(
            "update Notion database schema",
            self._client.databases.update,
            database_id=self._database_id,
            properties=dict(properties),
        )

    def find_pages_by_github_id(self, github_id: str) -> List[Dict[str, Any]]:
        response = self._call(
            "query Notion database",
            self._client.databases.query,
            database_id=self._database_id,
            filter=build_github_id_filter(github_id),
        )
        return list(response.get("results", []))

    def create_page(self, properties: Mapping[str, Any]) -> Dict[str, Any]:
        return self._call(
            "create Notion page",
            self._client.pages.create,
            parent={"database_id": self._database_id},
            properties=dict(properties),
        )

    def update_page(self, page_id: str, properties: Mapping[str, Any]) -> Dict[str, Any]:
        return self._call(
            "update Notion page",
            self._client.pages.update,
            page_id=page_id,
            properties=dict(properties),
        )

    def archive_page(self, page_id: str) -> Dict[str, Any]:
        return self._call(
            "archive Notion page",
            self._client.pages.update,
            page_id=page_id,
            archived=True,
        )
