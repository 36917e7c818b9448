"""Zendesk REST API v2 client: create ticket, append comment, link ticket to a thread."""
import logging
from typing import Any, Optional

import httpx

from bridge.schemas.ticket import Ticket

logger = logging.getLogger(__name__)

NEW_TICKET_COMMENT = "New Discord Ticket"


class ZendeskError(Exception):
    """Non-2xx response or transport failure talking to Zendesk."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ZendeskClient:
    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._auth = httpx.BasicAuth(f"{email}/token", api_token)
        self._timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(
                auth=self._auth,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                r = await client.request(
                    method,
                    url,
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.warning("Zendesk %s %s failed: %s", method, path, e)
            raise ZendeskError(f"Zendesk {method} {path} failed: {e!s}") from e
        if r.status_code >= 400:
            err_body = r.text
            if len(err_body) > 500:
                err_body = err_body[:500] + "..."
            logger.warning("Zendesk API error %s on %s %s: %s", r.status_code, method, path, err_body)
            raise ZendeskError(
                f"Zendesk {method} {path} returned {r.status_code}",
                status_code=r.status_code,
            )
        if not r.content:
            return {}
        return r.json()

    async def create_ticket(self, subject: str) -> Ticket:
        data = await self._request(
            "POST",
            "/tickets.json",
            {"ticket": {"subject": subject, "comment": {"body": NEW_TICKET_COMMENT}}},
        )
        ticket = data.get("ticket")
        if not ticket:
            raise ZendeskError("Zendesk create ticket response has no ticket")
        return Ticket.model_validate(ticket)

    async def update_ticket(self, ticket_id: str, comment: str) -> None:
        """Append a public comment and reopen the ticket."""
        await self._request(
            "PUT",
            f"/tickets/{ticket_id}.json",
            {"ticket": {"comment": {"body": comment}, "status": "open"}},
        )

    async def link_thread(
        self,
        ticket_id: str,
        thread_id: str,
        *,
        field_id: int | None = None,
        group_id: int | None = None,
    ) -> None:
        """Store the thread id in a custom field and assign the group. No-op when neither is configured."""
        ticket: dict[str, Any] = {}
        if field_id is not None:
            ticket["custom_fields"] = [{"id": field_id, "value": str(thread_id)}]
        if group_id is not None:
            ticket["group_id"] = group_id
        if not ticket:
            return
        await self._request("PUT", f"/tickets/{ticket_id}.json", {"ticket": ticket})
