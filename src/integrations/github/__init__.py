"""GitHub collaborators: app authentication, GraphQL reads and webhooks."""

from .graphql import GitHubApiError, GitHubGraphQLClient, PaginationLimitExceeded  # noqa: F401
from .project_items import (  # noqa: F401
    ProjectField,
    ProjectItemRecord,
    extract_status,
    map_field_type,
    normalize_item,
)
