"""SQLAlchemy models."""
from app.models.shop import Shop, WalletProvider
from app.models.affiliate import AffiliateUser, AffiliateStatus, AcquisitionSource
from app.models.ledger import (
    Invoice,
    InvoiceStatus,
    Commission,
    CommissionStatus,
    Withdrawal,
    WithdrawalStatus,
    PaymentType,
)
from app.models.system import WebhookEvent, JobRun

__all__ = [
    "Shop",
    "WalletProvider",
    "AffiliateUser",
    "AffiliateStatus",
    "AcquisitionSource",
    "Invoice",
    "InvoiceStatus",
    "Commission",
    "CommissionStatus",
    "Withdrawal",
    "WithdrawalStatus",
    "PaymentType",
    "WebhookEvent",
    "JobRun",
]
