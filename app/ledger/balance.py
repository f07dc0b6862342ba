"""Balance computation from persisted commissions and withdrawals.

There is no stored running balance: every read aggregates the ledger.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Commission, CommissionStatus, Withdrawal, WithdrawalStatus
from app.models.types import utcnow

ZERO = Decimal("0")


@dataclass(frozen=True)
class Balance:
    available: Decimal
    available_commissions: Decimal
    pending_commissions: Decimal
    pending_withdrawals: Decimal
    paid_withdrawals: Decimal


async def _sum(session: AsyncSession, column, *criteria) -> Decimal:
    result = await session.execute(select(func.coalesce(func.sum(column), 0)).where(*criteria))
    value = result.scalar()
    return Decimal(str(value)) if value is not None else ZERO


async def compute_balance(
    session: AsyncSession, shop_id: uuid.UUID, as_of: Optional[datetime] = None
) -> Balance:
    """Withdrawable balance of a shop at ``as_of`` (default: now).

    available = PAID commissions past their hold - PENDING withdrawals,
    clamped at zero. PROCESSING/PAID/FAILED withdrawals are not subtracted.
    """
    as_of = as_of or utcnow()

    available_commissions = await _sum(
        session,
        Commission.net_revenue,
        Commission.shop_id == shop_id,
        Commission.status == CommissionStatus.PAID,
        or_(Commission.available_at.is_(None), Commission.available_at <= as_of),
    )
    pending_commissions = await _sum(
        session,
        Commission.net_revenue,
        Commission.shop_id == shop_id,
        Commission.status == CommissionStatus.PENDING,
    )
    pending_withdrawals = await _sum(
        session,
        Withdrawal.requested_amount,
        Withdrawal.shop_id == shop_id,
        Withdrawal.status == WithdrawalStatus.PENDING,
    )
    paid_withdrawals = await _sum(
        session,
        Withdrawal.requested_amount,
        Withdrawal.shop_id == shop_id,
        Withdrawal.status == WithdrawalStatus.PAID,
    )

    return Balance(
        available=max(ZERO, available_commissions - pending_withdrawals),
        available_commissions=available_commissions,
        pending_commissions=pending_commissions,
        pending_withdrawals=pending_withdrawals,
        paid_withdrawals=paid_withdrawals,
    )
