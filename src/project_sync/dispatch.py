"""Routes verified GitHub webhook deliveries to the sync pipeline."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

import structlog

from integrations.github.graphql import GitHubApiError, GitHubGraphQLClient
from integrations.github.project_items import normalize_item
from integrations.notion.client import NotionApiError, NotionDatabaseClient

from .schema import ReconcileResult, SchemaGate, reconcile_project_schema
from .upsert import DuplicatePageError, ProjectItemUpserter, UpsertAction, UpsertOutcome

LOGGER = structlog.get_logger(__name__)

ClientFactory = Callable[[Union[int, str]], GitHubGraphQLClient]


class EventFamily(str, Enum):
    PROJECT_CARD = "project_card"
    PROJECT_ITEM = "projects_v2_item"


class WebhookEvent(Enum):
    """Every ``(event, action)`` pair the relay reacts to."""

    PROJECT_CARD_CREATED = (EventFamily.PROJECT_CARD, "created")
    PROJECT_CARD_MOVED = (EventFamily.PROJECT_CARD, "moved")
    PROJECT_CARD_DELETED = (EventFamily.PROJECT_CARD, "deleted")
    PROJECT_ITEM_CREATED = (EventFamily.PROJECT_ITEM, "created")
    PROJECT_ITEM_EDITED = (EventFamily.PROJECT_ITEM, "edited")
    PROJECT_ITEM_DELETED = (EventFamily.PROJECT_ITEM, "deleted")

    @property
    def family(self) -> EventFamily:
        return self.value[0]

    @property
    def action(self) -> str:
        return self.value[1]

    @classmethod
    def parse(cls, event_name: Optional[str], action: Optional[str]) -> Optional["WebhookEvent"]:
        return _EVENTS_BY_KEY.get((event_name or "", action or ""))


_EVENTS_BY_KEY: Dict[tuple, WebhookEvent] = {
    (event.family.value, event.action): event for event in WebhookEvent
}

ITEM_ACTIONS: Dict[WebhookEvent, UpsertAction] = {
    WebhookEvent.PROJECT_ITEM_CREATED: UpsertAction.CREATE,
    WebhookEvent.PROJECT_ITEM_EDITED: UpsertAction.UPDATE,
    WebhookEvent.PROJECT_ITEM_DELETED: UpsertAction.DELETE,
}


@dataclass(frozen=True)
class DispatchResult:
    """What happened to a delivery; errors are reported here instead of raised."""

    event: Optional[WebhookEvent]
    handled: bool
    outcome: Optional[UpsertOutcome] = None
    github_id: Optional[str] = None
    error: Optional[str] = None


class EventDispatcher:
    """Dispatches webhook deliveries through a fixed event table."""

    def __init__(
        self,
        client_factory: ClientFactory,
        notion: NotionDatabaseClient,
        *,
        project_id: Optional[str] = None,
        schema_gate: Optional[SchemaGate] = None,
        upserter: Optional[ProjectItemUpserter] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self._client_factory = client_factory
        self._notion = notion
        self._project_id = project_id
        self._schema_gate = schema_gate or SchemaGate()
        self._upserter = upserter or ProjectItemUpserter(notion)
        self._logger = (logger or LOGGER).bind(component="dispatcher")
        self._handlers: Dict[EventFamily, Callable[..., DispatchResult]] = {
            EventFamily.PROJECT_CARD: self._handle_project_card,
            EventFamily.PROJECT_ITEM: self._handle_project_item,
        }

    @property
    def schema_gate(self) -> SchemaGate:
        return self._schema_gate

    def dispatch(
        self,
        event_name: Optional[str],
        payload: Mapping[str, Any],
        *,
        delivery_id: Optional[str] = None,
    ) -> DispatchResult:
        """Handle one delivery; never raises."""

        if not isinstance(payload, Mapping):
            self._logger.error("webhook_payload_invalid", event=event_name, delivery_id=delivery_id)
            return DispatchResult(event=None, handled=False, error="Payload is not a JSON object")

        log =self._logger.bind(event=event_name, action=payload.get("action"), delivery_id=delivery_id)
        event = WebhookEvent.parse(event_name, payload.get("action"))
        if event is None:
            log.info("webhook_event_ignored")
            return DispatchResult(event=None, handled=False)

        log.info("webhook_event_received", installation_id=(payload.get("installation") or {}).get("id"))
        handler = self._handlers[event.family]
        try:
            return handler(event, payload, log)
        except (GitHubApiError, NotionApiError, DuplicatePageError) as exc:
            log.error("webhook_handling_failed", error=str(exc))
            return DispatchResult(event=event, handled=False, error=str(exc))
        except Exception as exc:  # pragma: no cover - safety net
            log.exception("webhook_handling_crashed")
            return DispatchResult(event=event, handled=False, error=str(exc))

    # ------------------------------------------------------------------
    def _handle_project_card(
        self,
        event: WebhookEvent,
        payload: Mapping[str, Any],
        log: structlog.BoundLogger,
    ) -> DispatchResult:
        log.info("legacy_project_card_unsupported")
        return DispatchResult(event=event, handled=False)

    def _handle_project_item(
        self,
        event: WebhookEvent,
        payload: Mapping[str, Any],
        log: structlog.BoundLogger,
    ) -> DispatchResult:
        installation_id = (payload.get("installation") or {}).get("id")
        if not installation_id:
            log.error("installation_id_missing")
            return DispatchResult(event=event, handled=False, error="Payload has no installation id")

        project_item = payload.get("projects_v2_item") or {}
        github = self._client_factory(installation_id)

        project_id = self._project_id or project_item.get("project_node_id")
        if project_id:
            result = self._schema_gate.ensure(lambda: self._reconcile(github, project_id, log))
            if result is not None and not result.ok:
                log.warning("schema_reconciliation_incomplete", error=result.error)
        else:
            log.warning("schema_reconciliation_skipped", reason="no project id")

        item_id = project_item.get("node_id")
        if not item_id:
            log.error("item_id_missing")
            return DispatchResult(event=event, handled=False, error="No item ID found in payload")

        item = github.fetch_project_item(item_id)
        if not item or not item.get("content"):
            log.info("item_without_content_skipped", item_id=item_id)
            return DispatchResult(event=event, handled=False)

        record = normalize_item(item)
        upsert = self._upserter.upsert(
            record,
            ITEM_ACTIONS[event],
            available_types=self._schema_gate.available_types,
        )
        return DispatchResult(event=event, handled=True, outcome=upsert.outcome, github_id=record.github_id)

    def _reconcile(
        self,
        github: GitHubGraphQLClient,
        project_id: str,
        log: structlog.BoundLogger,
    ) -> ReconcileResult:
        log.info("schema_initialization_started", project_id=project_id)
        return reconcile_project_schema(github, self._notion, project_id, logger=log)
