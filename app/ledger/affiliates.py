"""Affiliate identity resolution for signup and activation events.

Status only moves forward (SIGNUP -> ACTIVE) and ``activated_at`` is
written once.
"""
import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.ledger.errors import NotFoundError, ValidationError
from app.ledger.references import ensure_shop_and_provider
from app.ledger.upsert import get_or_create
from app.models import AcquisitionSource, AffiliateStatus, AffiliateUser
from app.models.types import utcnow

logger = logging.getLogger(__name__)


def _identity(shop_id: uuid.UUID, wallet_provider_id: uuid.UUID, partner_user_id: str) -> dict:
    return {
        "partner_user_id": partner_user_id,
        "wallet_provider_id": wallet_provider_id,
        "shop_id": shop_id,
    }


def _activate(affiliate: AffiliateUser, at: datetime) -> None:
    affiliate.status = AffiliateStatus.ACTIVE
    if affiliate.activated_at is None:
        affiliate.activated_at = at


async def resolve_or_create_on_signup(
    session: AsyncSession,
    shop_id: uuid.UUID,
    wallet_provider_id: uuid.UUID,
    partner_user_id: str,
    acquisition_source: AcquisitionSource = AcquisitionSource.QR,
) -> AffiliateUser:
    """Find the affiliate for a signup event, creating it in SIGNUP if absent."""
    await ensure_shop_and_provider(session, shop_id, wallet_provider_id)

    affiliate, created = await get_or_create(
        session,
        AffiliateUser,
        _identity(shop_id, wallet_provider_id, partner_user_id),
        defaults={"status": AffiliateStatus.SIGNUP, "acquisition_source": acquisition_source},
    )
    if created:
        logger.info(f"Created affiliate {affiliate.id} on signup (partnerUserId: {partner_user_id})")
        return affiliate

    # Source can still change while SIGNUP; an ACTIVE record is left untouched
    if affiliate.status == AffiliateStatus.SIGNUP and affiliate.acquisition_source != acquisition_source:
        affiliate.acquisition_source = acquisition_source
        await session.flush()

    logger.info(f"Kept affiliate {affiliate.id} on signup (partnerUserId: {partner_user_id})")
    return affiliate


async def resolve_or_activate(
    session: AsyncSession,
    shop_id: uuid.UUID,
    wallet_provider_id: uuid.UUID,
    partner_user_id: Optional[str] = None,
    affiliate_user_id: Optional[uuid.UUID] = None,
    paid_at: Optional[datetime] = None,
    acquisition_source: Optional[AcquisitionSource] = None,
) -> AffiliateUser:
    """Resolve the affiliate behind an activation and promote it to ACTIVE.

    Addressed either by ``affiliate_user_id`` (must exist) or by the
    partner user id triple (found or created). ``affiliate_user_id`` wins
    when both are given.
    """
    await ensure_shop_and_provider(session, shop_id, wallet_provider_id)

    if affiliate_user_id is not None:
        affiliate = await session.get(AffiliateUser, affiliate_user_id)
        if affiliate is None:
            raise NotFoundError("AffiliateUser", affiliate_user_id)
        if affiliate.shop_id != shop_id or affiliate.wallet_provider_id != wallet_provider_id:
            raise ValidationError(
                f"AffiliateUser {affiliate_user_id} does not belong to shop {shop_id} "
                f"and wallet provider {wallet_provider_id}",
                field="affiliateUserId",
            )
        if affiliate.status != AffiliateStatus.ACTIVE:
            _activate(affiliate, utcnow())
            await session.flush()
            logger.info(f"Activated affiliate {affiliate.id}")
        return affiliate

    if not partner_user_id:
        raise ValidationError(
            "partnerUserId is required when affiliateUserId is absent", field="partnerUserId"
        )

    activated_at = paid_at or utcnow()
    affiliate, created = await get_or_create(
        session,
        AffiliateUser,
        _identity(shop_id, wallet_provider_id, partner_user_id),
        defaults={
            "status": AffiliateStatus.ACTIVE,
            "activated_at": activated_at,
            "acquisition_source": acquisition_source or AcquisitionSource.QR,
        },
    )
    if created:
        logger.info(f"Created active affiliate {affiliate.id} (partnerUserId: {partner_user_id})")
        return affiliate

    if affiliate.status != AffiliateStatus.ACTIVE or affiliate.activated_at is None:
        _activate(affiliate, activated_at)
        await session.flush()
        logger.info(f"Activated affiliate {affiliate.id} (partnerUserId: {partner_user_id})")

    return affiliate
