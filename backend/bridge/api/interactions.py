"""Discord interactions endpoint: signed PING handshake and slash commands."""
import json
import logging
import random

from discord_interactions import InteractionResponseType, InteractionType, verify_key
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from bridge.audit import AuditLog
from bridge.config import Settings
from bridge.deps import get_app_settings, get_audit

logger = logging.getLogger(__name__)

router = APIRouter(tags=["interactions"])

EMOJIS = ["😭", "😄", "😌", "🤓", "😎", "😤", "🤖", "😶‍🌫️", "🌏", "📸", "💿", "👋", "🌊", "✨"]


def random_emoji() -> str:
    return random.choice(EMOJIS)


@router.post("/interactions")
async def interactions(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    audit: AuditLog = Depends(get_audit),
):
    """
    Verify the Ed25519 signature Discord puts on every interaction, then answer it.
    PING -> PONG; "test" command -> canned reply; anything else -> 400.
    """
    if not settings.public_key:
        raise HTTPException(status_code=503, detail="Interactions not configured (PUBLIC_KEY)")
    body = await request.body()
    signature = request.headers.get("X-Signature-Ed25519")
    timestamp = request.headers.get("X-Signature-Timestamp")
    if not signature or not timestamp or not verify_key(body, signature, timestamp, settings.public_key):
        raise HTTPException(status_code=401, detail="Bad request signature")
    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")

    interaction_type = payload.get("type")

    if interaction_type == InteractionType.PING:
        audit.event("Received PING interaction")
        return {"type": InteractionResponseType.PONG}

    if interaction_type == InteractionType.APPLICATION_COMMAND:
        data = payload.get("data") or {}
        if not isinstance(data, dict):
            audit.event("Received malformed command interaction")
            return JSONResponse(status_code=400, content={"error": "invalid command data"})
        name = data.get("name")
        if name == "test":
            audit.event("Received test command")
            return {
                "type": InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE,
                "data": {"content": f"hello world {random_emoji()}"},
            }
        logger.error("unknown command: %s", name)
        audit.event(f"Received unknown command: {name}")
        return JSONResponse(status_code=400, content={"error": "unknown command"})

    logger.error("unknown interaction type %s", interaction_type)
    audit.event(f"Received unknown interaction type: {interaction_type}")
    return JSONResponse(status_code=400, content={"error": "unknown interaction type"})
