"""GitHub App authentication helpers."""
from __future__ import annotations

from typing import Optional, Union

import structlog
from githubkit import GitHub
from githubkit.auth import AppAuthStrategy
from githubkit.exception import GitHubException

from .graphql import GITHUB_API_BASE_URL, GitHubApiError, GitHubGraphQLClient

LOGGER = structlog.get_logger(__name__)


class GitHubAppClientFactory:
    """Mints installation tokens and builds GraphQL clients scoped to them."""

    def __init__(
        self,
        app_id: Union[int, str],
        private_key: str,
        *,
        base_url: str = GITHUB_API_BASE_URL,
        github: Optional[GitHub] = None,
    ) -> None:
        if not app_id or not private_key:
            raise RuntimeError("GitHub App authentication requires an app id and a private key.")
        self._base_url = base_url
        # Disable HTTP caching so installation tokens are always fresh
        self._github = github or GitHub(
            AppAuthStrategy(app_id=app_id, private_key=private_key),
            base_url=base_url,
            http_cache=False,
        )
        self._logger = LOGGER.bind(component="github_app")

    def installation_token(self, installation_id: Union[int, str]) -> str:
        try:
            response = self._github.rest.apps.create_installation_access_token(int(installation_id))
        except (GitHubException, ValueError) as exc:
            raise GitHubApiError(f"Failed to create an access token for installation {installation_id}: {exc}") from exc
        self._logger.debug("installation_token_created", installation_id=installation_id)
        return response.parsed_data.token

    def __call__(self, installation_id: Union[int, str]) -> GitHubGraphQLClient:
        return GitHubGraphQLClient(self.installation_token(installation_id), base_url=self._base_url)
