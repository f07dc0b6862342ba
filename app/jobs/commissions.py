"""Commission derivation job.

Turns every PAID invoice that has no commission yet into exactly one
commission.
"""
import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.jobs.base import BaseJob
from app.ledger.commissions import derive_commission
from app.models import Commission, Invoice, InvoiceStatus, Shop

logger = logging.getLogger(__name__)


class CommissionDerivationJob(BaseJob):
    """Derive commissions for paid invoices."""

    name = "commission_derivation"

    def __init__(self, session: AsyncSession, batch_size: int = 500):
        super().__init__(session)
        self.batch_size = batch_size

    async def _pending_invoices(
        self, after: Optional[tuple[datetime, uuid.UUID]] = None
    ) -> list[tuple[uuid.UUID, str, datetime]]:
        """PAID invoices without a commission, oldest first, after the ``after`` cursor.

        Invoices of shops whose rate is out of range are left out.
        """
        query = (
            select(Invoice.id, Invoice.external_id, Invoice.paid_at)
            .join(Shop, Shop.id == Invoice.shop_id)
            .outerjoin(Commission, Commission.invoice_id == Invoice.id)
            .where(Invoice.status == InvoiceStatus.PAID)
            .where(Commission.id.is_(None))
            .where(Shop.commission_rate >= 0, Shop.commission_rate <= 1)
        )
        if after is not None:
            paid_at, invoice_id = after
            query = query.where(
                or_(
                    Invoice.paid_at > paid_at,
                    and_(Invoice.paid_at == paid_at, Invoice.id > invoice_id),
                )
            )
        result = await self.db.execute(
            query.order_by(Invoice.paid_at.asc(), Invoice.id.asc()).limit(self.batch_size)
        )
        return [tuple(row) for row in result.all()]

    async def _derive(self, invoice_id: uuid.UUID) -> bool:
        invoice = await self.db.get(Invoice, invoice_id)
        shop = await self.db.get(Shop, invoice.shop_id)
        _, created = await derive_commission(self.db, invoice, shop)
        await self.db.commit()
        return created

    async def run(self) -> dict:
        """Derive one commission per pending invoice; failures don't stop the batch.

        The cursor only moves forward, so an invoice that keeps failing is
        retried on the next run without holding back newer ones.
        """
        await self.start_run()

        result = {
            "success": True,
            "invoices_seen": 0,
            "commissions_created": 0,
            "errors": [],
        }

        try:
            cursor = None
            while True:
                # Plain keys only: rollbacks expire loaded rows
                batch = await self._pending_invoices(after=cursor)
                if not batch:
                    break
                result["invoices_seen"] += len(batch)
                logger.info(f"Found {len(batch)} invoices awaiting commission")

                for invoice_id, external_id, paid_at in batch:
                    try:
                        if await self._derive(invoice_id):
                            result["commissions_created"] += 1
                    except Exception as e:
                        await self.db.rollback()
                        result["errors"].append(f"{external_id}: {e}")
                        logger.error(f"Error deriving commission for invoice {invoice_id}: {e}")
                    cursor = (paid_at, invoice_id)

            await self.complete_run(result["commissions_created"], None)

        except Exception as e:
            result["success"] = False
            result["errors"].append(str(e))
            logger.error(f"Commission derivation failed: {e}", exc_info=True)
            await self.db.rollback()
            await self.complete_run(result["commissions_created"], str(e))

        return result
