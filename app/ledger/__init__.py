"""Affiliate commission ledger."""
from app.ledger.balance import Balance, compute_balance
from app.ledger.commissions import derive_commission, split_revenue
from app.ledger.errors import (
    AuthenticationError,
    InsufficientBalanceError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from app.ledger.webhooks import WebhookResult, handle_webhook_event
from app.ledger.withdrawals import request_withdrawal

__all__ = [
    "Balance",
    "compute_balance",
    "derive_commission",
    "split_revenue",
    "AuthenticationError",
    "InsufficientBalanceError",
    "LedgerError",
    "NotFoundError",
    "ValidationError",
    "WebhookResult",
    "handle_webhook_event",
    "request_withdrawal",
]
