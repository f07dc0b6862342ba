"""Operator endpoints: manual job triggers, payouts, pilot reset."""
import uuid
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import StrictFloat, StrictInt
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import verify_api_key
from app.api.schemas import CamelModel
from app.api.withdrawals import WithdrawalResponse
from app.database import get_session
from app.jobs import CommissionDerivationJob
from app.ledger.maintenance import purge_pilot_data
from app.ledger.withdrawals import (
    mark_withdrawal_failed,
    mark_withdrawal_paid,
    mark_withdrawal_processing,
)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(verify_api_key)])


class PayoutRequest(CamelModel):
    payout_amount: Union[StrictInt, StrictFloat]
    transaction_hash: Optional[str] = None


@router.post("/derive-commissions")
async def trigger_commission_derivation(db: AsyncSession = Depends(get_session)):
    """Manually run commission derivation."""
    result = await CommissionDerivationJob(db).run()
    return {"status": "completed", "job": CommissionDerivationJob.name, **result}


@router.post("/withdrawals/{withdrawal_id}/processing", response_model=WithdrawalResponse)
async def start_withdrawal_processing(withdrawal_id: uuid.UUID, db: AsyncSession = Depends(get_session)):
    """Move a PENDING withdrawal to PROCESSING."""
    withdrawal = await mark_withdrawal_processing(db, withdrawal_id)
    await db.commit()
    return WithdrawalResponse.from_model(withdrawal)


@router.post("/withdrawals/{withdrawal_id}/paid", response_model=WithdrawalResponse)
async def settle_withdrawal(
    withdrawal_id: uuid.UUID,
    request: PayoutRequest,
    db: AsyncSession = Depends(get_session),
):
    """Mark a PROCESSING withdrawal as paid out."""
    withdrawal = await mark_withdrawal_paid(
        db, withdrawal_id, request.payout_amount, request.transaction_hash
    )
    await db.commit()
    return WithdrawalResponse.from_model(withdrawal)


@router.post("/withdrawals/{withdrawal_id}/failed", response_model=WithdrawalResponse)
async def fail_withdrawal(withdrawal_id: uuid.UUID, db: AsyncSession = Depends(get_session)):
    """Mark a PENDING or PROCESSING withdrawal as failed."""
    withdrawal = await mark_withdrawal_failed(db, withdrawal_id)
    await db.commit()
    return WithdrawalResponse.from_model(withdrawal)


@router.post("/pilot-reset")
async def reset_pilot_data(
    confirm: bool = Query(False),
    db: AsyncSession = Depends(get_session),
):
    """Purge pilot affiliates, invoices, commissions and webhook events."""
    if not confirm:
        raise HTTPException(status_code=400, detail="Pass confirm=true to purge pilot data")
    deleted = await purge_pilot_data(db)
    return {"status": "completed", "deleted": deleted}
