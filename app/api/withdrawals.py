"""Withdrawal API endpoints."""
import uuid
from datetime import datetime
from typing import Optional, Union

from fastapi import APIRouter, Depends, status
from pydantic import StrictFloat, StrictInt
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_shop
from app.api.schemas import CamelModel
from app.database import get_session
from app.ledger.balance import compute_balance
from app.ledger.withdrawals import list_withdrawals, request_withdrawal
from app.models import Shop, Withdrawal

router = APIRouter(prefix="/withdrawals", tags=["withdrawals"])


class WithdrawalResponse(CamelModel):
    """A withdrawal as shown to the shop."""
    id: uuid.UUID
    requested_amount: float
    payment_type: str
    destination_address: Optional[str]
    status: str
    payout_amount: Optional[float]
    transaction_hash: Optional[str]
    created_at: Optional[datetime]
    paid_at: Optional[datetime]

    @classmethod
    def from_model(cls, withdrawal: Withdrawal) -> "WithdrawalResponse":
        return cls(
            id=withdrawal.id,
            requested_amount=float(withdrawal.requested_amount),
            payment_type=withdrawal.payment_type.value,
            destination_address=withdrawal.destination_address,
            status=withdrawal.status.value,
            payout_amount=float(withdrawal.payout_amount) if withdrawal.payout_amount is not None else None,
            transaction_hash=withdrawal.transaction_hash,
            created_at=withdrawal.created_at,
            paid_at=withdrawal.paid_at,
        )


class WithdrawalListResponse(CamelModel):
    withdrawals: list[WithdrawalResponse]


class WithdrawalCreateRequest(CamelModel):
    """Withdrawal request body."""
    amount: Union[StrictInt, StrictFloat]
    payment_type: str
    destination_address: Optional[str] = None


class WithdrawalCreateResponse(CamelModel):
    ok: bool
    withdrawal_id: uuid.UUID
    status: str
    available_balance: float


@router.get("", response_model=WithdrawalListResponse)
async def get_withdrawals(
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_session),
):
    """List the caller's withdrawals, newest first."""
    withdrawals = await list_withdrawals(db, shop.id)
    return WithdrawalListResponse(
        withdrawals=[WithdrawalResponse.from_model(w) for w in withdrawals]
    )


@router.post("", response_model=WithdrawalCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_withdrawal(
    request: WithdrawalCreateRequest,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_session),
):
    """Request a withdrawal against the available balance."""
    withdrawal = await request_withdrawal(
        db,
        shop.id,
        amount=request.amount,
        payment_type=request.payment_type,
        destination_address=request.destination_address,
    )
    balance = await compute_balance(db, shop.id)

    return WithdrawalCreateResponse(
        ok=True,
        withdrawal_id=withdrawal.id,
        status=withdrawal.status.value,
        available_balance=float(balance.available),
    )
