"""API authentication.

The dashboard backend owns user sessions. It calls this service with the
shared API key and forwards the signed-in user's id in ``X-User-Id``.
"""
import hmac

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_session
from app.models import Shop

settings = get_settings()

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
user_id_header = APIKeyHeader(name="X-User-Id", auto_error=False)


async def verify_api_key(api_key: str = Security(api_key_header)) -> str:
    """Verify the API key from request header."""
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
        )

    if not hmac.compare_digest(api_key.encode(), settings.api_secret_key.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )

    return api_key


async def get_current_user_id(
    user_id: str = Security(user_id_header),
    _: str = Depends(verify_api_key),
) -> str:
    """Id of the authenticated user the request is made for."""
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user_id.strip()


async def get_current_shop(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
) -> Shop:
    """The shop owned by the authenticated user."""
    result = await db.execute(select(Shop).where(Shop.user_id == user_id))
    shop = result.scalar_one_or_none()
    if not shop:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shop not found")
    return shop
