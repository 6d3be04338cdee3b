"""Pydantic schemas for Airtable REST payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AirtableTable(BaseModel):
    """Table entry from the base metadata listing."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str | None = None


class AirtableField(BaseModel):
    """Field definition; `options` is type-specific and kept opaque."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    type: str
    options: dict[str, Any] | None = None


class AirtableRecord(BaseModel):
    """Record as returned by the records endpoints."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    fields: dict[str, Any] = Field(default_factory=dict)
    created_time: str | None = Field(default=None, alias="createdTime")
