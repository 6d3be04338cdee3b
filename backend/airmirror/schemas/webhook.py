"""Pydantic schemas for the Airtable automation webhook."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class WebhookEvent(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class WebhookPayload(BaseModel):
    """
    Body posted by the Airtable automation script.

    Every field is optional here; presence is checked by the webhook service
    so rejections carry their own error codes instead of a 422.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    event: str | None = None
    table_id: str | None = Field(default=None, alias="tableId")
    table_name: str | None = Field(default=None, alias="tableName")
    record_id: str | None = Field(default=None, alias="recordId")
    secret: str | None = None


class WebhookResult(BaseModel):
    """Successful webhook response."""

    success: bool = True
    event: WebhookEvent
    action: str
    record_id: str
    message: str
