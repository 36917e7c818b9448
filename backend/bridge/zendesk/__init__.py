"""Zendesk REST integration."""
from bridge.zendesk.client import NEW_TICKET_COMMENT, ZendeskClient, ZendeskError

__all__ = [
    "NEW_TICKET_COMMENT",
    "ZendeskClient",
    "ZendeskError",
]
