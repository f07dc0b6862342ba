"""Commission API endpoints."""
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_shop
from app.api.schemas import CamelModel
from app.database import get_session
from app.ledger.commissions import list_commissions
from app.models import Shop

router = APIRouter(prefix="/commissions", tags=["commissions"])


class CommissionResponse(CamelModel):
    id: uuid.UUID
    event_type: str
    status: str
    gross_revenue: float
    net_revenue: float
    available_at: Optional[datetime]
    invoice_id: Optional[uuid.UUID]
    created_at: Optional[datetime]


class CommissionListResponse(CamelModel):
    commissions: list[CommissionResponse]


@router.get("", response_model=CommissionListResponse)
async def get_commissions(
    limit: int = Query(50, ge=1, le=200),
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_session),
):
    """Get the caller's commissions, newest first."""
    commissions = await list_commissions(db, shop.id, limit=limit)

    return CommissionListResponse(
        commissions=[
            CommissionResponse(
                id=c.id,
                event_type=c.event_type,
                status=c.status.value,
                gross_revenue=float(c.gross_revenue),
                net_revenue=float(c.net_revenue),
                available_at=c.available_at,
                invoice_id=c.invoice_id,
                created_at=c.created_at,
            )
            for c in commissions
        ]
    )
