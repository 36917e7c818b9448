"""Discord -> Zendesk: open a ticket per support thread, forward human replies as ticket comments."""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from bridge.audit import AuditLog
from bridge.services.correlation import CorrelationStore
from bridge.zendesk.client import ZendeskClient

logger = logging.getLogger(__name__)

CREATE_FAILED_NOTICE = "Failed to create or update Zendesk ticket. Please try again later."
NOT_LINKED_NOTICE = (
    "This thread is not linked to a Zendesk ticket yet, so your message was not forwarded. "
    "Please contact the support team."
)
DISCORD_PROVENANCE = "*Message from Discord*"


def comment_from_discord(content: str) -> str:
    return f"{content}\n\n{DISCORD_PROVENANCE}"


class SupportBridge:
    """Gateway event handlers. Never raise: every failure is logged, audited and, where a user sees it, posted."""

    def __init__(
        self,
        zendesk: ZendeskClient,
        correlation: CorrelationStore,
        audit: AuditLog,
        *,
        forum_id: Optional[int],
        thread_field_id: Optional[int] = None,
        group_id: Optional[int] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.zendesk = zendesk
        self.correlation = correlation
        self.audit = audit
        self.forum_id = forum_id
        self.thread_field_id = thread_field_id
        self.group_id = group_id
        self._sleep = sleep

    def in_support_forum(self, channel: Any) -> bool:
        return self.forum_id is not None and getattr(channel, "parent_id", None) == self.forum_id

    async def on_thread_created(self, thread: Any) -> None:
        if not self.in_support_forum(thread):
            return
        try:
            ticket = await self.zendesk.create_ticket(thread.name)
            await self.correlation.record(thread, ticket.id)
            self.audit.event(f"New thread created: {thread.id}, Zendesk ticket: {ticket.id}")
            await self.zendesk.link_thread(
                ticket.id,
                str(thread.id),
                field_id=self.thread_field_id,
                group_id=self.group_id,
            )
            logger.info("Zendesk ticket %s linked to thread %s", ticket.id, thread.id)
        except Exception:
            logger.exception("Error creating or updating Zendesk ticket for thread %s", thread.id)
            self.audit.event(f"Error creating or updating Zendesk ticket for thread: {thread.id}")
            await self._notify(thread, CREATE_FAILED_NOTICE)

    async def on_message_created(self, message: Any) -> None:
        thread = message.channel
        if not self.in_support_forum(thread) or message.author.bot:
            return
        try:
            await self._sleep(self.correlation.policy.initial_delay)
            ticket_id = await self.correlation.resolve(thread)
            if not ticket_id:
                logger.error("Failed to retrieve Zendesk ticket ID for thread: %s", thread.id)
                self.audit.event(f"Failed to retrieve Zendesk ticket ID for thread: {thread.id}")
                await self._notify(thread, NOT_LINKED_NOTICE)
                return
            await self.zendesk.update_ticket(ticket_id, comment_from_discord(message.content))
            self.audit.event(f"Updated Zendesk ticket: {ticket_id} for thread: {thread.id}")
        except Exception:
            logger.exception("Error updating Zendesk ticket for thread %s", thread.id)
            self.audit.event(f"Error updating Zendesk ticket for thread: {thread.id}")

    async def _notify(self, thread: Any, text: str) -> None:
        try:
            await thread.send(text)
        except Exception as e:
            logger.warning("Could not post notice into thread %s: %s", thread.id, e)
