"""Financial ledger models: invoices, commissions and withdrawals."""
import enum
import uuid
from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, Uuid

from app.database import Base
from app.models.types import JSONPayload, Money, utcnow


class InvoiceStatus(str, enum.Enum):
    PAID = "PAID"


class CommissionStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"


class PaymentType(str, enum.Enum):
    CRYPTO = "CRYPTO"
    FIAT = "FIAT"


class WithdrawalStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PAID = "PAID"
    FAILED = "FAILED"


class Invoice(Base):
    """Gross revenue received from a provider for one external event."""

    __tablename__ = "invoices"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    external_id = Column(String(255), unique=True, nullable=False, index=True)
    event_type = Column(String(20), nullable=False)  # 'CPA' during the pilot
    status = Column(
        Enum(InvoiceStatus, native_enum=False, length=20),
        nullable=False,
        default=InvoiceStatus.PAID,
    )
    gross_revenue = Column(Money, nullable=False)
    currency = Column(String(8), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=False)
    transaction_hash = Column(String(255))

    shop_id = Column(Uuid, ForeignKey("shops.id"), nullable=False, index=True)
    affiliate_user_id = Column(Uuid, ForeignKey("affiliate_users.id"), nullable=False)
    wallet_provider_id = Column(Uuid, ForeignKey("wallet_providers.id"), nullable=False)

    raw_payload = Column(JSONPayload)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Commission(Base):
    """The shop's share of an invoice, withdrawable once available_at passes.

    Amounts are immutable after creation; only status and available_at move.
    """

    __tablename__ = "commissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_type = Column(String(20), nullable=False)
    status = Column(
        Enum(CommissionStatus, native_enum=False, length=20),
        nullable=False,
        default=CommissionStatus.PENDING,
    )
    gross_revenue = Column(Money, nullable=False)
    net_revenue = Column(Money, nullable=False)  # shop share
    platform_revenue = Column(Money, nullable=False)
    available_at = Column(DateTime(timezone=True), index=True)  # null: available once PAID

    shop_id = Column(Uuid, ForeignKey("shops.id"), nullable=False, index=True)
    wallet_provider_id = Column(Uuid, ForeignKey("wallet_providers.id"), nullable=False)
    affiliate_user_id = Column(Uuid, ForeignKey("affiliate_users.id"))
    invoice_id = Column(Uuid, ForeignKey("invoices.id"), unique=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Withdrawal(Base):
    """A payout request against the shop's available balance."""

    __tablename__ = "withdrawals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    requested_amount = Column(Money, nullable=False)
    payment_type = Column(Enum(PaymentType, native_enum=False, length=20), nullable=False)
    destination_address = Column(String(255))  # required for CRYPTO
    status = Column(
        Enum(WithdrawalStatus, native_enum=False, length=20),
        nullable=False,
        default=WithdrawalStatus.PENDING,
    )
    payout_amount = Column(Money)  # may be below requested_amount after fees
    transaction_hash = Column(String(255))

    shop_id = Column(Uuid, ForeignKey("shops.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    paid_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
