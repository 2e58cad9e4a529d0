"""HTTP surface: the GitHub webhook receiver and a health probe."""
from __future__ import annotations

import argparse
import json
import sys
import threading
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from integrations.github.app_auth import GitHubAppClientFactory
from integrations.github.webhooks import (
    DELIVERY_HEADER,
    EVENT_HEADER,
    SIGNATURE_HEADER,
    SignatureMismatch,
    SignatureMissing,
    verify_signature,
)
from integrations.notion.client import NotionDatabaseClient

from .config import Settings
from .dispatch import EventDispatcher
from .schema import SchemaGate
from .utils import configure_logger

LOGGER = structlog.get_logger(__name__)


def build_dispatcher(settings: Settings, *, schema_gate: Optional[SchemaGate] = None) -> EventDispatcher:
    """Wire the real GitHub and Notion collaborators into a dispatcher."""

    app_id, private_key = settings.require_github_app()
    client_factory = GitHubAppClientFactory(app_id, private_key, base_url=settings.github_api_url)
    notion = NotionDatabaseClient(settings.require_notion_token(), database_id=settings.require_database_id())
    return EventDispatcher(
        client_factory,
        notion,
        project_id=settings.github_project_id,
        schema_gate=schema_gate or SchemaGate(),
    )


def create_app(settings: Optional[Settings] = None, *, dispatcher: Optional[EventDispatcher] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title="GitHub Projects to Notion sync")
    app.state.settings = settings
    app.state.dispatcher = dispatcher
    dispatcher_lock = threading.Lock()

    def _get_dispatcher() -> EventDispatcher:
        with dispatcher_lock:
            if app.state.dispatcher is None:
                app.state.dispatcher = build_dispatcher(settings)
            return app.state.dispatcher

    @app.get("/health")
    async def health() -> dict:
        return {"status": "healthy"}

    @app.post("/webhook")
    async def webhook(request: Request) -> PlainTextResponse:
        signature = request.headers.get(SIGNATURE_HEADER)
        event_name = request.headers.get(EVENT_HEADER)
        delivery_id = request.headers.get(DELIVERY_HEADER)
        log = LOGGER.bind(event=event_name, delivery_id=delivery_id)
        log.info("webhook_received", signature="present" if signature else "missing")

        body = await request.body()
        try:
            verify_signature(settings.github_webhook_secret, body, signature)
        except SignatureMissing:
            log.error("webhook_signature_missing")
            return PlainTextResponse("Missing signature", status_code=401)
        except SignatureMismatch:
            log.error("webhook_verification_failed")
            return PlainTextResponse("Unauthorized", status_code=401)

        try:
            payload = json.loads(body)
        except ValueError:
            log.error("webhook_payload_invalid")
            return PlainTextResponse("Invalid JSON payload", status_code=400)
        if not isinstance(payload, dict):
            log.error("webhook_payload_invalid", payload_type=type(payload).__name__)
            return PlainTextResponse("Invalid JSON payload", status_code=400)

        try:
            dispatcher = _get_dispatcher()
        except RuntimeError as exc:
            log.error("dispatcher_unavailable", error=str(exc))
            raise HTTPException(status_code=500, detail="Sync is not configured") from exc

        await run_in_threadpool(dispatcher.dispatch, event_name, payload, delivery_id=delivery_id)
        log.info("webhook_processed")
        return PlainTextResponse("OK")

    return app


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the GitHub Projects to Notion webhook server")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on (default: $PORT or 3000)")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: INFO)")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)
    logger = configure_logger(args.log_level)

    app = create_app(settings)
    logger.info("server_starting", host=args.host, port=args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
