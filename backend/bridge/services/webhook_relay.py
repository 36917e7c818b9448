"""Zendesk -> Discord: post a ticket comment into its support thread through the commenter's delivery webhook."""
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional

import httpx

from bridge.audit import AuditLog
from bridge.schemas.webhook import ZendeskCommentIn

logger = logging.getLogger(__name__)

ActiveThreadsFetcher = Callable[[], Awaitable[Iterable[Any]]]


class UnknownCommenterError(Exception):
    """No delivery webhook is configured for this Zendesk commenter."""

    def __init__(self, commenter_id: str) -> None:
        super().__init__(f"No valid webhook URL for commenter_id: {commenter_id}")
        self.commenter_id = commenter_id


class RelayOutcome(str, Enum):
    delivered = "delivered"
    thread_not_found = "thread_not_found"


class WebhookRelay:
    def __init__(
        self,
        commenter_webhooks: dict[str, str],
        fetch_active_threads: ActiveThreadsFetcher,
        audit: AuditLog,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.commenter_webhooks = {str(k): str(v) for k, v in commenter_webhooks.items()}
        self._fetch_active_threads = fetch_active_threads
        self.audit = audit
        self._timeout = timeout
        self._transport = transport

    def delivery_url_for(self, commenter_id: str) -> str:
        url = self.commenter_webhooks.get(commenter_id)
        if not url:
            raise UnknownCommenterError(commenter_id)
        return url

    async def find_thread(self, thread_id: str) -> Optional[Any]:
        """Linear scan of the forum's active threads. Archived threads are not returned."""
        threads = list(await self._fetch_active_threads())
        self.audit.event(f"Fetched active threads: {json.dumps([str(t.id) for t in threads])}")
        for t in threads:
            if str(t.id) == thread_id:
                return t
        return None

    async def relay(self, payload: ZendeskCommentIn) -> RelayOutcome:
        """
        Deliver one Zendesk comment.
        Raises UnknownCommenterError before touching Discord when the commenter has no webhook;
        delivery failures (httpx.HTTPError) propagate.
        """
        self.audit.event(f"Received webhook payload: {payload.model_dump_json()}")
        try:
            webhook_url = self.delivery_url_for(payload.commenter_id)
        except UnknownCommenterError as e:
            self.audit.event(str(e))
            raise

        self.audit.event(f"Thread ID from payload: {payload.threadID}")
        thread = await self.find_thread(payload.threadID)
        if thread is None:
            logger.info("No matching thread found for ID: %s", payload.threadID)
            self.audit.event(f"No matching thread found for ID: {payload.threadID}")
            return RelayOutcome.thread_not_found
        self.audit.event(f"Matching thread found: {thread.id}")

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            r = await client.post(
                webhook_url,
                params={"thread_id": str(thread.id)},
                json={"content": payload.comment_description},
            )
        self.audit.event(f"Sent message to Discord webhook: {payload.comment_description}")
        self.audit.event(f"Response from Discord webhook: {r.status_code}")
        r.raise_for_status()
        return RelayOutcome.delivered
