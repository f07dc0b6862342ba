"""Pytest configuration and fixtures for the ledger tests."""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["API_SECRET_KEY"] = "test-api-key"
os.environ["WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["DERIVATION_ENABLED"] = "false"

import json
import time
from decimal import Decimal
from typing import AsyncGenerator

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_session
from app.ledger.signatures import compute_signature
from app.main import app
from app.models import (
    Commission,
    CommissionStatus,
    PaymentType,
    Shop,
    WalletProvider,
    Withdrawal,
    WithdrawalStatus,
)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
API_KEY = "test-api-key"
WEBHOOK_SECRET = "test-webhook-secret"
SHOP_OWNER_ID = "user-owner-1"


@pytest.fixture(scope="function")
async def test_db_engine():
    """
    Create test database engine
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_maker(test_db_engine):
    return async_sessionmaker(test_db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """
    Create test database session
    """
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(session_maker) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client against the app, using the test database."""

    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
async def shop(db_session) -> Shop:
    shop = Shop(
        user_id=SHOP_OWNER_ID,
        name="Corner Shop",
        address="12 Market Street",
        commission_rate=Decimal("0.2"),
        affiliation_code="CORNER-001",
        is_active=True,
    )
    db_session.add(shop)
    await db_session.commit()
    return shop


@pytest.fixture
async def provider(db_session) -> WalletProvider:
    provider = WalletProvider(
        name="Pilot Wallet",
        api_key="pilot-wallet-key",
        is_active=True,
        cpa_amount=Decimal("10"),
    )
    db_session.add(provider)
    await db_session.commit()
    return provider


@pytest.fixture
def add_commission(db_session, shop, provider):
    """Insert a commission for the test shop."""

    async def _add(net, status=CommissionStatus.PAID, available_at=None):
        net = Decimal(str(net))
        commission = Commission(
            event_type="CPA",
            status=status,
            gross_revenue=net * 5,
            net_revenue=net,
            platform_revenue=net * 4,
            available_at=available_at,
            shop_id=shop.id,
            wallet_provider_id=provider.id,
        )
        db_session.add(commission)
        await db_session.commit()
        return commission

    return _add


@pytest.fixture
def add_withdrawal(db_session, shop):
    """Insert a withdrawal for the test shop."""

    async def _add(amount, status=WithdrawalStatus.PENDING, payment_type=PaymentType.FIAT):
        withdrawal = Withdrawal(
            shop_id=shop.id,
            requested_amount=Decimal(str(amount)),
            payment_type=payment_type,
            status=status,
        )
        db_session.add(withdrawal)
        await db_session.commit()
        return withdrawal

    return _add


@pytest.fixture
def auth_headers():
    return {"X-API-Key": API_KEY, "X-User-Id": SHOP_OWNER_ID}


@pytest.fixture
def webhook_request():
    """Build a signed webhook body and headers."""

    def _build(event_id, event_type, data, timestamp=None, secret=WEBHOOK_SECRET, provider="pilot-wallet"):
        body = json.dumps({"type": event_type, "data": data}).encode()
        timestamp = str(int(time.time()) if timestamp is None else timestamp)
        headers = {
            "Content-Type": "application/json",
            "X-Signature": "sha256=" + compute_signature(secret, timestamp, body),
            "X-Timestamp": timestamp,
            "X-Event-Id": event_id,
            "X-Provider": provider,
        }
        return body, headers

    return _build
