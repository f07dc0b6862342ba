"""Commission derivation: splitting a paid invoice between shop and platform."""
import logging
import uuid
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.ledger.errors import ValidationError
from app.ledger.upsert import find_one, get_or_create
from app.models import Commission, CommissionStatus, Invoice, InvoiceStatus, Shop

logger = logging.getLogger(__name__)
settings = get_settings()

AMOUNT_QUANTUM = Decimal("0.000001")


def _decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def split_revenue(gross_revenue: Decimal, commission_rate: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(net, platform)`` with ``net = gross * rate`` and ``net + platform == gross``."""
    gross_revenue = _decimal(gross_revenue)
    commission_rate = _decimal(commission_rate)
    if not Decimal(0) <= commission_rate <= Decimal(1):
        raise ValidationError(f"commissionRate must be within [0, 1], got {commission_rate}", field="commissionRate")

    net_revenue = (gross_revenue * commission_rate).quantize(AMOUNT_QUANTUM)
    return net_revenue, gross_revenue - net_revenue


async def derive_commission(
    session: AsyncSession,
    invoice: Invoice,
    shop: Shop,
    hold_period: Optional[timedelta] = None,
) -> tuple[Commission, bool]:
    """Return ``(commission, created)`` for ``invoice``, creating it if absent.

    The commission is PAID straight away; the availability hold is carried
    by ``available_at`` alone.
    """
    existing = await find_one(session, Commission, invoice_id=invoice.id)
    if existing is not None:
        return existing, False

    if invoice.status != InvoiceStatus.PAID:
        raise ValidationError(f"Invoice {invoice.id} is not PAID", field="status")
    if invoice.shop_id != shop.id:
        raise ValidationError(f"Invoice {invoice.id} does not belong to shop {shop.id}", field="shopId")

    net_revenue, platform_revenue = split_revenue(invoice.gross_revenue, shop.commission_rate)
    if hold_period is None:
        hold_period = timedelta(days=settings.commission_hold_days)

    commission, created = await get_or_create(
        session,
        Commission,
        {"invoice_id": invoice.id},
        defaults={
            "event_type": invoice.event_type,
            "status": CommissionStatus.PAID,
            "gross_revenue": _decimal(invoice.gross_revenue),
            "net_revenue": net_revenue,
            "platform_revenue": platform_revenue,
            "available_at": invoice.paid_at + hold_period,
            "shop_id": shop.id,
            "wallet_provider_id": invoice.wallet_provider_id,
            "affiliate_user_id": invoice.affiliate_user_id,
        },
    )
    if created:
        logger.info(
            f"Derived commission {commission.id} for invoice {invoice.id}: "
            f"net {net_revenue}, platform {platform_revenue}, available {commission.available_at}"
        )
    return commission, created


async def list_commissions(session: AsyncSession, shop_id: uuid.UUID, limit: int = 50) -> list[Commission]:
    result = await session.execute(
        select(Commission)
        .where(Commission.shop_id == shop_id)
        .order_by(Commission.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
