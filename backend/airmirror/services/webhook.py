"""Webhook ingest for single-record changes pushed by Airtable automations."""

import hmac
import logging

from airmirror.errors import AirMirrorError, ValidationError, WebhookAuthError
from airmirror.schemas.webhook import WebhookEvent, WebhookPayload, WebhookResult
from airmirror.services.sync import SyncService

logger = logging.getLogger(__name__)


def authenticate(payload: WebhookPayload, secret: str | None) -> None:
    """Reject payloads whose shared secret does not match the configured one."""
    if not secret:
        raise AirMirrorError(
            "Webhook secret not configured",
            code="missing_secret_config",
            status_code=500,
        )
    if not payload.secret or not hmac.compare_digest(payload.secret.encode(), secret.encode()):
        raise WebhookAuthError("Invalid webhook secret")


def validate(payload: WebhookPayload) -> WebhookEvent:
    """Check required fields and the event type. No remote calls happen here."""
    missing = [
        name
        for name, value in (
            ("event", payload.event),
            ("tableId", payload.table_id),
            ("tableName", payload.table_name),
        )
        if not value
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    try:
        event = WebhookEvent(payload.event)
    except ValueError:
        raise ValidationError(f"Unknown event type: {payload.event}", code="unknown_event") from None

    if not payload.record_id:
        raise ValidationError(f"recordId required for {event} events")

    return event


async def handle_webhook(
    payload: WebhookPayload,
    secret: str | None,
    sync_service: SyncService,
) -> WebhookResult:
    """
    Authenticate, validate and apply one webhook notification.

    create/update re-fetch the record and upsert it; delete flips the
    soft-delete flag.
    """
    authenticate(payload, secret)
    event = validate(payload)

    logger.info(f"Webhook received: {event} for table {payload.table_name} ({payload.table_id})")

    if event is WebhookEvent.DELETE:
        flagged = await sync_service.delete_record(payload.table_name, payload.record_id)
        logger.info(f"Record {payload.record_id} marked as deleted ({flagged} rows)")
        return WebhookResult(
            event=event,
            action="deleted",
            record_id=payload.record_id,
            message="Record marked as deleted",
        )

    await sync_service.sync_record(payload.table_id, payload.table_name, payload.record_id)
    logger.info(f"Record {payload.record_id} {event}d")
    return WebhookResult(
        event=event,
        action="upserted",
        record_id=payload.record_id,
        message=f"Record {event}d successfully",
    )
