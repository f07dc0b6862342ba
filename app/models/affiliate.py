"""Affiliate user model."""
import enum
import uuid
from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, UniqueConstraint, Uuid

from app.database import Base
from app.models.types import utcnow


class AffiliateStatus(str, enum.Enum):
    SIGNUP = "SIGNUP"
    ACTIVE = "ACTIVE"


class AcquisitionSource(str, enum.Enum):
    QR = "QR"
    LINK = "LINK"
    API = "API"


class AffiliateUser(Base):
    """A wallet user referred by a shop.

    Identity is the (partner_user_id, wallet_provider_id, shop_id) triple:
    the same partner user id may exist under several providers or shops.
    """

    __tablename__ = "affiliate_users"
    __table_args__ = (
        UniqueConstraint(
            "partner_user_id", "wallet_provider_id", "shop_id", name="uq_affiliate_identity"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    partner_user_id = Column(String(255), nullable=False, index=True)
    wallet_provider_id = Column(Uuid, ForeignKey("wallet_providers.id"), nullable=False)
    shop_id = Column(Uuid, ForeignKey("shops.id"), nullable=False, index=True)
    status = Column(
        Enum(AffiliateStatus, native_enum=False, length=20),
        nullable=False,
        default=AffiliateStatus.SIGNUP,
    )
    acquisition_source = Column(
        Enum(AcquisitionSource, native_enum=False, length=20),
        nullable=False,
        default=AcquisitionSource.QR,
    )
    activated_at = Column(DateTime(timezone=True))  # set once, never overwritten
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
