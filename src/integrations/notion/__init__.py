"""Notion collaborators: property payloads, schema patches and the SDK wrapper."""

from .client import NotionApiError, NotionDatabaseClient  # noqa: F401
from .mappers import PROPERTY_NAMES, build_page_properties, build_schema_patch  # noqa: F401
