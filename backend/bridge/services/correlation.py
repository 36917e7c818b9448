"""
Thread <-> ticket correlation.

Each support thread carries a marker message "ZENDESK_TICKET_ID:<id>" posted by the bot
right after the ticket is created; the same pair is saved in the ticket_links table.
Lookups read the table first. Threads without a row fall back to scanning for the marker,
retried under ConsistencyPolicy because a message fetched right after it was sent may not
be visible yet.
"""
import asyncio
import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from bridge.storage.repositories import link_delete, link_get, link_save

logger = logging.getLogger(__name__)

MARKER_PREFIX = "ZENDESK_TICKET_ID:"
# Messages read from the start of the thread when looking for the marker
MARKER_SCAN_LIMIT = 100

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class ConsistencyPolicy(BaseModel):
    """How long to wait for a just-written marker to become readable."""

    initial_delay: float = Field(default=1.0, ge=0)  # before the first lookup of a message event
    attempts: int = Field(default=3, ge=1)  # marker scans before giving up
    retry_delay: float = Field(default=1.0, ge=0)  # between scans, fixed


def format_marker(ticket_id: str) -> str:
    return f"{MARKER_PREFIX}{ticket_id}"


def parse_marker(content: str | None) -> Optional[str]:
    """Ticket id from a marker message, else None."""
    if not content or not content.startswith(MARKER_PREFIX):
        return None
    ticket_id = content.split(":", 1)[1].strip()
    return ticket_id or None


class CorrelationStore:
    def __init__(
        self,
        policy: ConsistencyPolicy | None = None,
        session_factory: SessionFactory | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.policy = policy or ConsistencyPolicy()
        self._session_factory = session_factory
        self._sleep = sleep

    async def record(self, thread: Any, ticket_id: str) -> None:
        """
        Save the link and post the marker into the thread. Failures propagate.
        The link is removed again when the marker cannot be posted.
        """
        if self._session_factory is not None:
            async with self._session_factory() as session:
                await link_save(session, str(thread.id), str(ticket_id))
        try:
            await thread.send(format_marker(ticket_id))
        except Exception:
            await self._unlink(thread)
            raise

    async def resolve(self, thread: Any) -> Optional[str]:
        """Ticket id for the thread, or None once every marker scan came back empty."""
        ticket_id = await self._lookup_link(thread)
        if ticket_id:
            return ticket_id
        for attempt in range(1, self.policy.attempts + 1):
            ticket_id = await self.scan_marker(thread)
            if ticket_id:
                logger.debug("Marker found in thread %s on attempt %s", thread.id, attempt)
                await self._backfill(thread, ticket_id)
                return ticket_id
            logger.info(
                "Marker not found in thread %s (attempt %s/%s)",
                thread.id,
                attempt,
                self.policy.attempts,
            )
            if attempt < self.policy.attempts:
                await self._sleep(self.policy.retry_delay)
        return None

    async def scan_marker(self, thread: Any) -> Optional[str]:
        """One pass over the earliest messages of the thread; the first bot-authored marker wins."""
        async for message in thread.history(limit=MARKER_SCAN_LIMIT, oldest_first=True):
            if not message.author.bot:
                continue
            ticket_id = parse_marker(message.content)
            if ticket_id:
                return ticket_id
        return None

    async def _lookup_link(self, thread: Any) -> Optional[str]:
        if self._session_factory is None:
            return None
        async with self._session_factory() as session:
            link = await link_get(session, str(thread.id))
            return link.ticket_id if link else None

    async def _unlink(self, thread: Any) -> None:
        if self._session_factory is None:
            return
        try:
            async with self._session_factory() as session:
                await link_delete(session, str(thread.id))
        except Exception as e:
            logger.error("Could not remove link for thread %s after failed marker: %s", thread.id, e)

    async def _backfill(self, thread: Any, ticket_id: str) -> None:
        if self._session_factory is None:
            return
        try:
            async with self._session_factory() as session:
                await link_save(session, str(thread.id), ticket_id)
        except Exception as e:
            # Marker still in the thread; next lookup scans again
            logger.warning("Could not back-fill link for thread %s: %s", thread.id, e)
