"""Withdrawal admission and payout lifecycle."""
import logging
import math
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.ledger.balance import compute_balance
from app.ledger.errors import InsufficientBalanceError, NotFoundError, ValidationError
from app.ledger.locks import shop_lock
from app.ledger.references import get_shop
from app.models import PaymentType, Withdrawal, WithdrawalStatus
from app.models.types import utcnow

logger = logging.getLogger(__name__)

# Allowed source states for each target state
TRANSITIONS = {
    WithdrawalStatus.PROCESSING: {WithdrawalStatus.PENDING},
    WithdrawalStatus.PAID: {WithdrawalStatus.PROCESSING},
    WithdrawalStatus.FAILED: {WithdrawalStatus.PENDING, WithdrawalStatus.PROCESSING},
}


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """Positive finite amount as Decimal."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(f"{field} must be a positive number", field=field)
    if not math.isfinite(value) or value <= 0:
        raise ValidationError(f"{field} must be a positive number", field=field)
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a positive number", field=field)


def parse_payment_type(value: Any) -> PaymentType:
    try:
        return PaymentType(value)
    except ValueError:
        raise ValidationError('paymentType must be "CRYPTO" or "FIAT"', field="paymentType")


async def request_withdrawal(
    session: AsyncSession,
    shop_id: uuid.UUID,
    amount: Any,
    payment_type: Any,
    destination_address: Optional[str] = None,
) -> Withdrawal:
    """Record a PENDING withdrawal if ``amount`` fits the available balance.

    The balance check and the insert run under the shop lock and commit
    together, so a concurrent request for the same shop sees this one.
    """
    requested = parse_amount(amount)
    payment_type = parse_payment_type(payment_type)

    if destination_address is not None and not isinstance(destination_address, str):
        raise ValidationError("destinationAddress must be a string", field="destinationAddress")
    destination = (destination_address or "").strip() or None
    if payment_type == PaymentType.CRYPTO and destination is None:
        raise ValidationError(
            "destinationAddress is required for CRYPTO withdrawals", field="destinationAddress"
        )

    async with shop_lock(session, shop_id):
        await get_shop(session, shop_id)
        balance = await compute_balance(session, shop_id)
        if requested > balance.available:
            logger.warning(
                f"Withdrawal refused for shop {shop_id}: requested {requested}, "
                f"available {balance.available}"
            )
            raise InsufficientBalanceError(requested, balance.available)

        withdrawal = Withdrawal(
            shop_id=shop_id,
            requested_amount=requested,
            payment_type=payment_type,
            destination_address=destination,
            status=WithdrawalStatus.PENDING,
        )
        session.add(withdrawal)
        await session.commit()

    logger.info(f"Withdrawal {withdrawal.id} requested for shop {shop_id}: {requested} ({payment_type.value})")
    return withdrawal


async def list_withdrawals(session: AsyncSession, shop_id: uuid.UUID) -> list[Withdrawal]:
    result = await session.execute(
        select(Withdrawal)
        .where(Withdrawal.shop_id == shop_id)
        .order_by(Withdrawal.created_at.desc())
    )
    return list(result.scalars().all())


async def _load_for_transition(
    session: AsyncSession, withdrawal_id: uuid.UUID, target: WithdrawalStatus
) -> Withdrawal:
    result = await session.execute(
        select(Withdrawal).where(Withdrawal.id == withdrawal_id).with_for_update()
    )
    withdrawal = result.scalar_one_or_none()
    if withdrawal is None:
        raise NotFoundError("Withdrawal", withdrawal_id)
    if withdrawal.status not in TRANSITIONS[target]:
        raise ValidationError(
            f"Withdrawal {withdrawal_id} cannot move from {withdrawal.status.value} to {target.value}",
            field="status",
        )
    return withdrawal


async def mark_withdrawal_processing(session: AsyncSession, withdrawal_id: uuid.UUID) -> Withdrawal:
    withdrawal = await _load_for_transition(session, withdrawal_id, WithdrawalStatus.PROCESSING)
    withdrawal.status = WithdrawalStatus.PROCESSING
    await session.flush()
    logger.info(f"Withdrawal {withdrawal_id} is processing")
    return withdrawal


async def mark_withdrawal_paid(
    session: AsyncSession,
    withdrawal_id: uuid.UUID,
    payout_amount: Any,
    transaction_hash: Optional[str] = None,
) -> Withdrawal:
    """Settle a PROCESSING withdrawal. The payout may be below the request (fees)."""
    payout = parse_amount(payout_amount, field="payoutAmount")
    withdrawal = await _load_for_transition(session, withdrawal_id, WithdrawalStatus.PAID)
    if payout > withdrawal.requested_amount:
        raise ValidationError("payoutAmount cannot exceed requestedAmount", field="payoutAmount")

    withdrawal.status = WithdrawalStatus.PAID
    withdrawal.payout_amount = payout
    withdrawal.transaction_hash = transaction_hash
    withdrawal.paid_at = utcnow()
    await session.flush()
    logger.info(f"Withdrawal {withdrawal_id} paid: {payout} of {withdrawal.requested_amount}")
    return withdrawal


async def mark_withdrawal_failed(session: AsyncSession, withdrawal_id: uuid.UUID) -> Withdrawal:
    withdrawal = await _load_for_transition(session, withdrawal_id, WithdrawalStatus.FAILED)
    withdrawal.status = WithdrawalStatus.FAILED
    await session.flush()
    logger.info(f"Withdrawal {withdrawal_id} failed")
    return withdrawal
