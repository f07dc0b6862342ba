"""Invoice ledger: the record of gross revenue received from providers.

The webhook path writes invoices only. Commissions are derived from them
separately and are never created or touched here.
"""
import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.ledger.references import ensure_shop_and_provider
from app.ledger.upsert import get_or_create
from app.models import Invoice, InvoiceStatus
from app.models.types import utcnow

logger = logging.getLogger(__name__)
settings = get_settings()


async def upsert_invoice_on_activation(
    session: AsyncSession,
    external_invoice_id: str,
    shop_id: uuid.UUID,
    wallet_provider_id: uuid.UUID,
    affiliate_user_id: uuid.UUID,
    gross_revenue: Decimal,
    currency: Optional[str] = None,
    paid_at: Optional[datetime] = None,
    transaction_hash: Optional[str] = None,
    event_type: Optional[str] = None,
    raw_payload: Optional[dict[str, Any]] = None,
) -> Invoice:
    """Create or refresh the PAID invoice for ``external_invoice_id``."""
    await ensure_shop_and_provider(session, shop_id, wallet_provider_id)

    values = {
        "event_type": event_type or settings.pilot_event_type,
        "status": InvoiceStatus.PAID,
        "gross_revenue": gross_revenue,
        "currency": currency or settings.default_currency,
        "paid_at": paid_at or utcnow(),
        "transaction_hash": transaction_hash,
        "raw_payload": raw_payload,
        "affiliate_user_id": affiliate_user_id,
    }

    invoice, created = await get_or_create(
        session,
        Invoice,
        {"external_id": external_invoice_id},
        defaults={**values, "shop_id": shop_id, "wallet_provider_id": wallet_provider_id},
    )
    if created:
        logger.info(
            f"Created invoice {invoice.id} (externalId: {external_invoice_id}, "
            f"affiliateUserId: {affiliate_user_id})"
        )
        return invoice

    if invoice.gross_revenue != gross_revenue:
        # Derived commissions keep the original amount
        logger.warning(
            f"Invoice amount changed on redelivery: externalId={external_invoice_id} "
            f"invoice={invoice.id} gross {invoice.gross_revenue} -> {gross_revenue}"
        )

    for column, value in values.items():
        setattr(invoice, column, value)
    await session.flush()

    logger.info(f"Updated invoice {invoice.id} (externalId: {external_invoice_id})")
    return invoice
