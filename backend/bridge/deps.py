"""Shared FastAPI dependencies. Services are built in the lifespan and kept on app.state."""
from fastapi import HTTPException, Request

from bridge.audit import AuditLog
from bridge.config import Settings, get_settings
from bridge.services.webhook_relay import WebhookRelay


def get_app_settings() -> Settings:
    return get_settings()


def get_audit(request: Request) -> AuditLog:
    audit = getattr(request.app.state, "audit", None)
    if audit is None:
        # Lifespan not run; events are dropped
        audit = AuditLog(None)
    return audit


def get_webhook_relay(request: Request) -> WebhookRelay:
    relay = getattr(request.app.state, "webhook_relay", None)
    if relay is None:
        raise HTTPException(status_code=503, detail="Webhook relay not initialized")
    return relay
