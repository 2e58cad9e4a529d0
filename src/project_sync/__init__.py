"""Relay GitHub Projects (v2) items into a mirrored Notion database."""

from .dispatch import DispatchResult, EventDispatcher, WebhookEvent  # noqa: F401
from .full_sync import SyncSummary, sync_project  # noqa: F401
from .schema import ReconcileResult, SchemaGate, reconcile_schema  # noqa: F401
from .upsert import DuplicatePageError, ProjectItemUpserter, UpsertAction, UpsertOutcome  # noqa: F401
