"""Repositories for ticket links."""
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from bridge.storage.models import TicketLinkModel


async def link_get(session: AsyncSession, thread_id: str) -> Optional[TicketLinkModel]:
    r = await session.execute(select(TicketLinkModel).where(TicketLinkModel.thread_id == thread_id))
    return r.scalar_one_or_none()


async def link_save(session: AsyncSession, thread_id: str, ticket_id: str) -> TicketLinkModel:
    """Insert or overwrite the link for a thread."""
    link = await link_get(session, thread_id)
    if link:
        link.ticket_id = ticket_id
    else:
        link = TicketLinkModel(thread_id=thread_id, ticket_id=ticket_id)
        session.add(link)
    await session.flush()
    return link


async def link_delete(session: AsyncSession, thread_id: str) -> bool:
    r = await session.execute(delete(TicketLinkModel).where(TicketLinkModel.thread_id == thread_id))
    return r.rowcount > 0
