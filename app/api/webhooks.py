"""Provider webhook endpoint."""
import json
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import CamelModel
from app.config import get_settings
from app.database import get_session
from app.ledger.errors import AuthenticationError, NotFoundError, ValidationError
from app.ledger.payloads import parse_event
from app.ledger.signatures import verify_hmac, verify_timestamp
from app.ledger.webhooks import handle_webhook_event

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


class WebhookResponse(CamelModel):
    """Acknowledgement sent back to the provider."""
    ok: bool
    duplicated: bool
    invoice_id: Optional[uuid.UUID] = None
    affiliate_user_id: Optional[uuid.UUID] = None


@router.post("/provider", response_model=WebhookResponse, response_model_exclude_none=True)
async def receive_provider_webhook(
    request: Request,
    db: AsyncSession = Depends(get_session),
):
    """Receive a signed provider event.

    Headers: X-Signature (sha256=<hex>), X-Timestamp (unix seconds),
    X-Event-Id, X-Provider. Authentication is checked before the body is
    parsed; the event id is checked before any ledger change.
    """
    signature = request.headers.get("X-Signature")
    timestamp = request.headers.get("X-Timestamp")
    event_id = request.headers.get("X-Event-Id")
    provider = request.headers.get("X-Provider")

    if not signature:
        raise AuthenticationError("missing X-Signature header")
    if not timestamp:
        raise AuthenticationError("missing X-Timestamp header")
    if not event_id:
        raise ValidationError("X-Event-Id header is required", field="X-Event-Id")
    if not provider:
        raise ValidationError("X-Provider header is required", field="X-Provider")

    if not verify_timestamp(timestamp, settings.webhook_max_drift_ms):
        raise AuthenticationError(f"expired timestamp {timestamp} for event {event_id}")

    raw_body = await request.body()
    if not verify_hmac(settings.webhook_secret, timestamp, signature, raw_body):
        raise AuthenticationError(f"invalid signature for event {event_id}")

    try:
        document = json.loads(raw_body)
    except ValueError:
        raise ValidationError("Invalid JSON body")

    event = parse_event(document)

    try:
        result = await handle_webhook_event(db, provider, event_id, event, document)
    except NotFoundError as e:
        # Unknown shop/provider/affiliate in a payload is the sender's error
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Webhook {event_id} handled (duplicated: {result.duplicated})")
    return WebhookResponse(
        ok=result.ok,
        duplicated=result.duplicated,
        invoice_id=result.invoice_id,
        affiliate_user_id=result.affiliate_user_id,
    )
