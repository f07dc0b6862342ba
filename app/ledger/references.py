"""Lookups for entities the webhook path may reference but never creates."""
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.ledger.errors import NotFoundError
from app.models import Shop, WalletProvider


async def get_shop(session: AsyncSession, shop_id: uuid.UUID) -> Shop:
    shop = await session.get(Shop, shop_id)
    if shop is None:
        raise NotFoundError("Shop", shop_id)
    return shop


async def ensure_shop_and_provider(
    session: AsyncSession, shop_id: uuid.UUID, wallet_provider_id: uuid.UUID
) -> Shop:
    """Fail with NotFoundError unless both the shop and the wallet provider exist."""
    shop = await get_shop(session, shop_id)
    if await session.get(WalletProvider, wallet_provider_id) is None:
        raise NotFoundError("WalletProvider", wallet_provider_id)
    return shop
