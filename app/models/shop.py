"""Shop and wallet provider models."""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, CheckConstraint, Uuid

from app.database import Base
from app.models.types import Money, Rate, utcnow


class Shop(Base):
    """A partner shop earning commissions on referred activations."""

    __tablename__ = "shops"
    __table_args__ = (
        CheckConstraint("commission_rate >= 0 AND commission_rate <= 1", name="ck_shop_commission_rate"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), unique=True, nullable=False, index=True)  # owner, 1:1
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False, default="")
    commission_rate = Column(Rate, nullable=False)  # shop share, fraction in [0, 1]
    affiliation_code = Column(String(64), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class WalletProvider(Base):
    """A wallet provider sending signup/activation webhooks."""

    __tablename__ = "wallet_providers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    api_key = Column(String(255), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    cpa_amount = Column(Money)
    created_at = Column(DateTime(timezone=True), default=utcnow)
