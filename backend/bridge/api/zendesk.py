"""Zendesk webhook endpoint: ticket comments back into their Discord thread."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import ValidationError

from bridge.audit import AuditLog
from bridge.auth.zendesk_verify import SIGNATURE_HEADER, TIMESTAMP_HEADER, verify_zendesk_signature
from bridge.config import Settings
from bridge.deps import get_app_settings, get_audit, get_webhook_relay
from bridge.schemas.webhook import ZendeskCommentIn
from bridge.services.webhook_relay import UnknownCommenterError, WebhookRelay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["zendesk"])


@router.post("/zendesk-webhook")
async def zendesk_webhook(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    audit: AuditLog = Depends(get_audit),
    relay: WebhookRelay = Depends(get_webhook_relay),
):
    """
    200 once the event is consumed, including when the thread is no longer active
    (Zendesk would otherwise keep retrying). 400 for a bad body or an unmapped commenter, 500 on failure.
    """
    body = await request.body()
    if settings.zendesk_webhook_secret and not verify_zendesk_signature(
        settings.zendesk_webhook_secret,
        body,
        request.headers.get(SIGNATURE_HEADER),
        request.headers.get(TIMESTAMP_HEADER),
    ):
        audit.event("Rejected Zendesk webhook with invalid signature")
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        payload = ZendeskCommentIn.model_validate_json(body)
    except ValidationError as e:
        audit.event(f"Rejected malformed webhook payload: {body[:500]!r}")
        raise HTTPException(status_code=400, detail=f"Invalid webhook payload: {e.error_count()} error(s)")

    try:
        await relay.relay(payload)
    except UnknownCommenterError:
        return Response(status_code=400)
    except Exception as e:
        logger.exception("Error processing Zendesk webhook")
        audit.event(f"Error processing Zendesk webhook: {e!s}")
        return Response(status_code=500)
    return Response(status_code=200)
