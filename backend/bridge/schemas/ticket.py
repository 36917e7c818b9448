"""Zendesk ticket as returned by the REST API (only the fields the bridge reads)."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CustomField(BaseModel):
    id: int
    value: Any = None


class Ticket(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    subject: Optional[str] = None
    status: Optional[str] = None
    group_id: Optional[int] = None
    custom_fields: list[CustomField] = []

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> str:
        return str(value)
