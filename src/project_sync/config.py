"""Environment-driven configuration for the relay."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from integrations.github.graphql import GITHUB_API_BASE_URL

from .utils import LOG_LEVEL_ENV, ensure_database_id, ensure_notion_token, ensure_project_id, load_private_key

DEFAULT_WEBHOOK_SECRET = "optional-secret"
DEFAULT_PORT = 3000


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Values consumed by the webhook server and the batch path.

    Missing secrets are tolerated here and reported by the ``require_*``
    accessors, so the health endpoint works on a partially configured host.
    """

    github_app_id: Optional[str] = None
    github_private_key: Optional[str] = None
    github_webhook_secret: str = DEFAULT_WEBHOOK_SECRET
    github_project_id: Optional[str] = None
    github_api_url: str = GITHUB_API_BASE_URL
    notion_token: Optional[str] = None
    notion_database_id: Optional[str] = None
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, *, load_env_file: bool = True) -> "Settings":
        if environ is None:
            if load_env_file:
                load_dotenv()
            environ = os.environ
        return cls(
            github_app_id=environ.get("GITHUB_APP_ID") or None,
            github_private_key=load_private_key(
                environ.get("GITHUB_APP_PRIVATE_KEY"),
                environ.get("GITHUB_APP_PRIVATE_KEY_PATH"),
            ),
            github_webhook_secret=environ.get("GITHUB_WEBHOOK_SECRET") or DEFAULT_WEBHOOK_SECRET,
            github_project_id=environ.get("GITHUB_PROJECT_ID") or None,
            github_api_url=environ.get("GITHUB_API_URL") or GITHUB_API_BASE_URL,
            notion_token=environ.get("NOTION_API_KEY") or environ.get("NOTION_TOKEN") or None,
            notion_database_id=environ.get("NOTION_DATABASE_ID") or None,
            port=_env_int(environ, "PORT", DEFAULT_PORT),
            log_level=environ.get(LOG_LEVEL_ENV, "INFO"),
        )

    def require_notion_token(self) -> str:
        return ensure_notion_token(self.notion_token)

    def require_database_id(self) -> str:
        return ensure_database_id(self.notion_database_id)

    def require_project_id(self) -> str:
        return ensure_project_id(self.github_project_id)

    def require_github_app(self) -> tuple:
        if not self.github_app_id or not self.github_private_key:
            raise RuntimeError(
                "GitHub App credentials are required. Set GITHUB_APP_ID and "
                "GITHUB_APP_PRIVATE_KEY (or GITHUB_APP_PRIVATE_KEY_PATH)."
            )
        return self.github_app_id, self.github_private_key
