"""Idempotency gate and webhook orchestration tests."""
import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.ledger.errors import NotFoundError
from app.ledger.events import record_event
from app.ledger.payloads import parse_event
from app.ledger.webhooks import handle_webhook_event
from app.models import AffiliateStatus, AffiliateUser, Invoice, WebhookEvent


async def count(session, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar()


def activation_document(shop, provider, **data):
    payload = {
        "externalInvoiceId": "inv_1",
        "shopId": str(shop.id),
        "walletProviderId": str(provider.id),
        "partnerUserId": "bob",
        "grossRevenue": 100,
    }
    payload.update(data)
    return {"type": "user.activated", "data": payload}


class TestRecordEvent:

    @pytest.mark.asyncio
    async def test_first_delivery_is_new(self, db_session):
        recorded = await record_event(db_session, "pilot-wallet", "evt_1", "user.signup", {"a": 1})

        assert recorded.is_new is True
        event = await db_session.get(WebhookEvent, recorded.event_record_id)
        assert event.event_id == "evt_1"
        assert event.processed_at is None

    @pytest.mark.asyncio
    async def test_redelivery_is_not_new(self, db_session):
        first = await record_event(db_session, "pilot-wallet", "evt_1", "user.signup", {"a": 1})
        second = await record_event(db_session, "other-provider", "evt_1", "user.signup", {"a": 2})

        assert second.is_new is False
        assert second.event_record_id == first.event_record_id
        assert await count(db_session, WebhookEvent) == 1

    @pytest.mark.asyncio
    async def test_concurrent_deliveries_have_one_winner(self, test_db_engine, session_maker):
        winners = []

        async def deliver(session):
            return await record_event(session, "pilot-wallet", "evt_race", "user.signup", {"a": 1})

        class LateSession(AsyncSession):
            """Lets the other delivery land between the lookup and the insert."""

            async def commit(self):
                async with session_maker() as early:
                    winners.append(await deliver(early))
                await super().commit()

        late_maker = async_sessionmaker(test_db_engine, class_=LateSession, expire_on_commit=False)
        async with late_maker() as late:
            loser = await deliver(late)

        [winner] = winners
        assert winner.is_new is True
        assert loser.is_new is False
        assert loser.event_record_id == winner.event_record_id
        async with session_maker() as session:
            assert await count(session, WebhookEvent) == 1


class TestHandleWebhookEvent:

    @pytest.mark.asyncio
    async def test_signup_then_duplicate(self, db_session, shop, provider):
        document = {
            "type": "user.signup",
            "data": {"shopId": str(shop.id), "walletProviderId": str(provider.id), "partnerUserId": "bob"},
        }
        event = parse_event(document)

        first = await handle_webhook_event(db_session, "pilot-wallet", "evt_1", event, document)
        second = await handle_webhook_event(db_session, "pilot-wallet", "evt_1", event, document)

        assert first.duplicated is False
        assert first.affiliate_user_id is not None
        assert second.duplicated is True
        assert second.affiliate_user_id is None
        assert await count(db_session, AffiliateUser) == 1

    @pytest.mark.asyncio
    async def test_activation_creates_invoice_and_stamps_event(self, db_session, shop, provider):
        document = activation_document(shop, provider)
        result = await handle_webhook_event(
            db_session, "pilot-wallet", "evt_2", parse_event(document), document
        )

        invoice = await db_session.get(Invoice, result.invoice_id)
        affiliate = await db_session.get(AffiliateUser, result.affiliate_user_id)
        assert invoice.external_id == "inv_1"
        assert invoice.raw_payload == document
        assert affiliate.status == AffiliateStatus.ACTIVE

        event = (await db_session.execute(
            select(WebhookEvent).where(WebhookEvent.event_id == "evt_2")
        )).scalar_one()
        assert event.processed_at is not None

    @pytest.mark.asyncio
    async def test_same_invoice_under_new_event_id_is_still_one_invoice(self, db_session, shop, provider):
        document = activation_document(shop, provider)
        first = await handle_webhook_event(db_session, "pilot-wallet", "evt_a", parse_event(document), document)
        second = await handle_webhook_event(db_session, "pilot-wallet", "evt_b", parse_event(document), document)

        assert second.duplicated is False
        assert second.invoice_id == first.invoice_id
        assert await count(db_session, Invoice) == 1

    @pytest.mark.asyncio
    async def test_domain_failure_keeps_unprocessed_event(self, session_maker, shop, provider):
        document = activation_document(shop, provider, partnerUserId=None, affiliateUserId=str(uuid.uuid4()))

        async with session_maker() as session:
            with pytest.raises(NotFoundError):
                await handle_webhook_event(session, "pilot-wallet", "evt_3", parse_event(document), document)

        async with session_maker() as session:
            event = (await session.execute(
                select(WebhookEvent).where(WebhookEvent.event_id == "evt_3")
            )).scalar_one()
            assert event.processed_at is None
            assert await count(session, Invoice) == 0

            # A retry with the same id is absorbed by the gate
            retry = await handle_webhook_event(session, "pilot-wallet", "evt_3", parse_event(document), document)
            assert retry.duplicated is True
            assert await count(session, WebhookEvent) == 1
