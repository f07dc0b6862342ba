"""Webhook payload parsing tests."""
import uuid
from datetime import timezone
from decimal import Decimal

import pytest

from app.ledger.errors import ValidationError
from app.ledger.payloads import ActivationEvent, SignupEvent, parse_event
from app.models import AcquisitionSource

SHOP_ID = str(uuid.uuid4())
PROVIDER_ID = str(uuid.uuid4())


def activation(**data):
    base = {
        "externalInvoiceId": "inv_1",
        "shopId": SHOP_ID,
        "walletProviderId": PROVIDER_ID,
        "partnerUserId": "bob",
        "grossRevenue": 100,
    }
    base.update(data)
    return {"type": "user.activated", "data": base}


class TestSignupPayload:

    def test_parses_signup(self):
        event = parse_event({
            "type": "user.signup",
            "data": {"shopId": SHOP_ID, "walletProviderId": PROVIDER_ID, "partnerUserId": "bob"},
        })
        assert isinstance(event, SignupEvent)
        assert event.data.shop_id == uuid.UUID(SHOP_ID)
        assert event.data.partner_user_id == "bob"
        assert event.data.acquisition_source == AcquisitionSource.QR

    def test_explicit_acquisition_source(self):
        event = parse_event({
            "type": "user.signup",
            "data": {
                "shopId": SHOP_ID,
                "walletProviderId": PROVIDER_ID,
                "partnerUserId": "bob",
                "acquisitionSource": "LINK",
            },
        })
        assert event.data.acquisition_source == AcquisitionSource.LINK

    def test_blank_partner_user_id_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_event({
                "type": "user.signup",
                "data": {"shopId": SHOP_ID, "walletProviderId": PROVIDER_ID, "partnerUserId": "  "},
            })
        assert "partnerUserId" in exc_info.value.message

    def test_unknown_acquisition_source_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_event({
                "type": "user.signup",
                "data": {
                    "shopId": SHOP_ID,
                    "walletProviderId": PROVIDER_ID,
                    "partnerUserId": "bob",
                    "acquisitionSource": "EMAIL",
                },
            })


class TestActivationPayload:

    def test_parses_activation(self):
        event = parse_event(activation(paidAt="2026-01-15T10:00:00Z", currency="USD"))
        assert isinstance(event, ActivationEvent)
        assert event.data.gross_revenue == Decimal("100")
        assert event.data.currency == "USD"
        assert event.data.paid_at.tzinfo is not None
        assert event.data.event_type == "CPA"

    def test_invoice_paid_is_an_alias(self):
        document = activation()
        document["type"] = "invoice.paid"
        assert isinstance(parse_event(document), ActivationEvent)

    def test_legacy_gross_amount(self):
        document = activation()
        del document["data"]["grossRevenue"]
        document["data"]["grossAmount"] = 42.5
        assert parse_event(document).data.gross_revenue == Decimal("42.5")

    def test_gross_revenue_wins_over_legacy(self):
        event = parse_event(activation(grossRevenue=10, grossAmount=99))
        assert event.data.gross_revenue == Decimal("10")

    @pytest.mark.parametrize("value", [0, -5, "100", None, True])
    def test_unusable_gross_revenue_is_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_event(activation(grossRevenue=value))
        assert "grossRevenue" in exc_info.value.message

    def test_naive_paid_at_is_utc(self):
        event = parse_event(activation(paidAt="2026-01-15T10:00:00"))
        assert event.data.paid_at.tzinfo == timezone.utc

    def test_invalid_paid_at_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_event(activation(paidAt="not-a-date"))

    def test_non_pilot_event_type_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_event(activation(eventType="CPL"))
        assert "CPA" in exc_info.value.message

    def test_blank_optional_strings_become_absent(self):
        event = parse_event(activation(affiliateUserId="", transactionHash="  "))
        assert event.data.affiliate_user_id is None
        assert event.data.transaction_hash is None

    def test_missing_external_invoice_id_is_rejected(self):
        document = activation()
        del document["data"]["externalInvoiceId"]
        with pytest.raises(ValidationError) as exc_info:
            parse_event(document)
        assert exc_info.value.field == "data.externalInvoiceId"


class TestEnvelope:

    def test_missing_type(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_event({"data": {}})
        assert exc_info.value.field == "type"

    def test_unsupported_type(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_event({"type": "user.deleted", "data": {}})
        assert "Unsupported" in exc_info.value.message

    def test_body_must_be_an_object(self):
        with pytest.raises(ValidationError):
            parse_event(["user.signup"])
