"""API routes."""
from app.api.webhooks import router as webhooks_router
from app.api.balance import router as balance_router
from app.api.withdrawals import router as withdrawals_router
from app.api.commissions import router as commissions_router
from app.api.admin import router as admin_router

__all__ = [
    "webhooks_router",
    "balance_router",
    "withdrawals_router",
    "commissions_router",
    "admin_router",
]
