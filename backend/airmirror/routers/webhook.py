"""Webhook endpoint for Airtable automation updates."""

from typing import Annotated

from fastapi import APIRouter, Depends

from airmirror.config import get_settings
from airmirror.dependencies import get_sync_service
from airmirror.schemas.webhook import WebhookPayload, WebhookResult
from airmirror.services.sync import SyncService
from airmirror.services.webhook import handle_webhook

router = APIRouter(prefix="/webhook", tags=["webhook"])


@router.post("", response_model=WebhookResult)
async def receive_webhook(
    payload: WebhookPayload,
    service: Annotated[SyncService, Depends(get_sync_service)],
) -> WebhookResult:
    """
    Apply a single-record change.

    Expected payload:
        {"event": "create" | "update" | "delete", "tableId": "tbl...",
         "tableName": "...", "recordId": "rec...", "secret": "..."}
    """
    return await handle_webhook(payload, get_settings().webhook_secret, service)


@router.get("")
async def webhook_status() -> dict:
    return {"status": "ok", "message": "Webhook endpoint is active"}
