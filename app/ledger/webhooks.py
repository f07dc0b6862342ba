"""Provider webhook handling: idempotency gate, then per-type ledger updates."""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from app.ledger.affiliates import resolve_or_activate, resolve_or_create_on_signup
from app.ledger.events import mark_processed, record_event
from app.ledger.invoices import upsert_invoice_on_activation
from app.ledger.payloads import ACTIVATED, INVOICE_PAID, SIGNUP, ActivationEvent, SignupEvent

logger = logging.getLogger(__name__)


@dataclass
class WebhookResult:
    ok: bool = True
    duplicated: bool = False
    invoice_id: Optional[uuid.UUID] = None
    affiliate_user_id: Optional[uuid.UUID] = None


async def _handle_signup(session: AsyncSession, event: SignupEvent, raw_payload: dict) -> WebhookResult:
    data = event.data
    affiliate = await resolve_or_create_on_signup(
        session,
        shop_id=data.shop_id,
        wallet_provider_id=data.wallet_provider_id,
        partner_user_id=data.partner_user_id,
        acquisition_source=data.acquisition_source,
    )
    return WebhookResult(affiliate_user_id=affiliate.id)


async def _handle_activation(session: AsyncSession, event: ActivationEvent, raw_payload: dict) -> WebhookResult:
    data = event.data
    affiliate = await resolve_or_activate(
        session,
        shop_id=data.shop_id,
        wallet_provider_id=data.wallet_provider_id,
        partner_user_id=data.partner_user_id,
        affiliate_user_id=data.affiliate_user_id,
        paid_at=data.paid_at,
        acquisition_source=data.acquisition_source,
    )
    invoice = await upsert_invoice_on_activation(
        session,
        external_invoice_id=data.external_invoice_id,
        shop_id=data.shop_id,
        wallet_provider_id=data.wallet_provider_id,
        affiliate_user_id=affiliate.id,
        gross_revenue=data.gross_revenue,
        currency=data.currency,
        paid_at=data.paid_at,
        transaction_hash=data.transaction_hash,
        event_type=data.event_type,
        raw_payload=raw_payload,
    )
    return WebhookResult(invoice_id=invoice.id, affiliate_user_id=affiliate.id)


Handler = Callable[[AsyncSession, Any, dict], Awaitable[WebhookResult]]

HANDLERS: dict[str, Handler] = {
    SIGNUP: _handle_signup,
    ACTIVATED: _handle_activation,
    INVOICE_PAID: _handle_activation,
}


async def handle_webhook_event(
    session: AsyncSession,
    provider: str,
    event_id: str,
    event: Union[SignupEvent, ActivationEvent],
    raw_payload: dict[str, Any],
) -> WebhookResult:
    """Process one authenticated, parsed provider event.

    Redeliveries of a recorded event id return ``duplicated=True`` without
    touching the ledger. If handling fails, the event row stays unprocessed
    and the ledger changes are rolled back.
    """
    recorded = await record_event(session, provider, event_id, event.type, raw_payload)
    if not recorded.is_new:
        return WebhookResult(duplicated=True)

    handler = HANDLERS.get(event.type)
    try:
        if handler is None:
            logger.info(f"No handler for event type {event.type}, acknowledging {event_id}")
            result = WebhookResult()
        else:
            result = await handler(session, event, raw_payload)

        await mark_processed(session, recorded.event_record_id)
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to process event {event_id} ({event.type}): {e}")
        raise

    logger.info(f"Processed event {event_id} ({event.type})")
    return result
