"""Inbound Zendesk webhook body."""
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class ZendeskCommentIn(BaseModel):
    """Body configured on the Zendesk trigger: thread id (from the custom field), comment, author."""

    model_config = ConfigDict(extra="ignore")

    threadID: str
    comment_description: str
    commenter_id: str

    @field_validator("threadID", "commenter_id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value
