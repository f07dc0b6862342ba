"""Balance API endpoint."""
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_shop
from app.api.schemas import CamelModel
from app.config import get_settings
from app.database import get_session
from app.ledger.balance import compute_balance
from app.models import Shop

settings = get_settings()

router = APIRouter(prefix="/balance", tags=["balance"])


class BalanceResponse(CamelModel):
    """Money truth for a shop."""
    shop_id: uuid.UUID
    shop_name: str
    currency: str
    commissions_available: float
    commissions_pending: float
    withdrawals_pending: float
    withdrawals_paid: float
    available_balance: float


@router.get("", response_model=BalanceResponse)
async def get_balance(
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_session),
):
    """Get the caller's shop balance, computed from the ledger."""
    balance = await compute_balance(db, shop.id)

    return BalanceResponse(
        shop_id=shop.id,
        shop_name=shop.name,
        currency=settings.default_currency,
        commissions_available=float(balance.available_commissions),
        commissions_pending=float(balance.pending_commissions),
        withdrawals_pending=float(balance.pending_withdrawals),
        withdrawals_paid=float(balance.paid_withdrawals),
        available_balance=float(balance.available),
    )
