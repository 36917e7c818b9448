"""SQLAlchemy models."""
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from bridge.storage.db import Base


class TicketLinkModel(Base):
    """Discord thread -> Zendesk ticket. One row per thread, written when the ticket is created."""
    __tablename__ = "ticket_links"

    thread_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    ticket_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
