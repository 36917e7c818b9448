"""FastAPI application: Discord interactions + Zendesk webhook, with the Discord gateway client alongside."""
import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse

from bridge.api import interactions, zendesk
from bridge.audit import AuditLog
from bridge.config import get_settings
from bridge.discord_client import ForumThreads, build_client
from bridge.services.correlation import ConsistencyPolicy, CorrelationStore
from bridge.services.support_sync import SupportBridge
from bridge.services.webhook_relay import WebhookRelay
from bridge.storage.db import close_db, get_session, init_db
from bridge.zendesk.client import ZendeskClient

logger = logging.getLogger(__name__)


def log_gateway_exit(task: asyncio.Task) -> None:
    """Done-callback of the gateway task: a login or connection failure is logged when it happens."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Discord gateway stopped: %s", exc, exc_info=exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    audit = AuditLog(settings.audit_log_path)
    await init_db(settings.database_url, echo=settings.debug)

    zendesk_client = ZendeskClient(
        settings.zendesk_base_url,
        settings.zendesk_email or "",
        settings.zendesk_api_token or "",
        timeout=settings.http_timeout,
    )
    correlation = CorrelationStore(
        ConsistencyPolicy(
            initial_delay=settings.correlation_initial_delay,
            attempts=settings.correlation_attempts,
            retry_delay=settings.correlation_retry_delay,
        ),
        session_factory=get_session,
    )
    bridge = SupportBridge(
        zendesk_client,
        correlation,
        audit,
        forum_id=settings.discord_support_forum_id,
        thread_field_id=settings.zendesk_thread_field_id,
        group_id=settings.zendesk_group_id,
    )
    client = build_client(bridge)
    app.state.audit = audit
    app.state.support_bridge = bridge
    app.state.discord_client = client
    app.state.webhook_relay = WebhookRelay(
        settings.commenter_webhook_urls,
        ForumThreads(client, settings.discord_support_forum_id),
        audit,
        timeout=settings.http_timeout,
    )

    if not (settings.zendesk_subdomain and settings.zendesk_email and settings.zendesk_api_token):
        logger.warning("Zendesk credentials are incomplete; ticket calls will fail")
    if not settings.zendesk_webhook_secret:
        logger.warning("ZENDESK_WEBHOOK_SECRET is not set; /zendesk-webhook accepts unsigned requests")
    if not settings.commenter_webhooks:
        logger.warning("COMMENTER_WEBHOOKS is empty; every Zendesk webhook will be rejected")

    gateway_task = None
    if settings.discord_token:
        gateway_task = asyncio.create_task(client.start(settings.discord_token))
        gateway_task.add_done_callback(log_gateway_exit)
    else:
        logger.warning("DISCORD_TOKEN is not set; gateway events are disabled")

    audit.event(f"Server started on port {settings.port}")
    try:
        yield
    finally:
        await client.close()
        if gateway_task is not None:
            gateway_task.cancel()
            try:
                await gateway_task
            except asyncio.CancelledError:
                pass
            except Exception:
                # Already logged by log_gateway_exit
                pass
        await close_db()
        audit.close()


app = FastAPI(
    title="Discord Zendesk Bridge",
    description="Relays Discord support threads to Zendesk tickets and back",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return 500 as JSON; let HTTPException through."""
    if isinstance(exc, HTTPException):
        raise exc
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.include_router(interactions.router)
app.include_router(zendesk.router)


@app.get("/health")
def health(request: Request):
    client = getattr(request.app.state, "discord_client", None)
    return {
        "status": "ok",
        "discord_ready": bool(client and client.is_ready()),
    }


def run() -> None:
    settings = get_settings()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.log_level.upper(),
    )
    logger.info("Listening on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
