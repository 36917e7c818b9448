"""Verify Zendesk webhook signatures (https://developer.zendesk.com/documentation/webhooks/verifying/)."""
import base64
import hashlib
import hmac

SIGNATURE_HEADER = "X-Zendesk-Webhook-Signature"
TIMESTAMP_HEADER = "X-Zendesk-Webhook-Signature-Timestamp"


def sign_zendesk_payload(secret: str, timestamp: str, body: bytes) -> str:
    """base64(HMAC-SHA256(secret, timestamp + body)), as Zendesk computes it."""
    digest = hmac.new(
        secret.encode(),
        timestamp.encode() + body,
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode()


def verify_zendesk_signature(
    secret: str,
    body: bytes,
    signature: str | None,
    timestamp: str | None,
) -> bool:
    if not secret or not signature or not timestamp:
        return False
    expected = sign_zendesk_payload(secret, timestamp, body)
    return hmac.compare_digest(expected, signature)
