"""Typed webhook payloads.

Provider bodies are open JSON objects with optional and legacy field
names. They are validated once here, at the boundary, and everything
downstream works with these models.
"""
import math
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from app.config import get_settings
from app.ledger.errors import ValidationError
from app.models import AcquisitionSource

SIGNUP = "user.signup"
ACTIVATED = "user.activated"
INVOICE_PAID = "invoice.paid"

SUPPORTED_EVENT_TYPES = frozenset({SIGNUP, ACTIVATED, INVOICE_PAID})


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    return math.isfinite(value) and value > 0


class _ProviderData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    shop_id: uuid.UUID
    wallet_provider_id: uuid.UUID

    @field_validator("shop_id", "wallet_provider_id", mode="before")
    @classmethod
    def _required_id(cls, value):
        if not isinstance(value, str) or not value.strip():
            raise ValueError("must be a non-empty string")
        return value.strip()


class SignupData(_ProviderData):
    partner_user_id: str
    acquisition_source: AcquisitionSource = AcquisitionSource.QR

    @field_validator("partner_user_id", mode="before")
    @classmethod
    def _required_string(cls, value):
        if not isinstance(value, str) or not value.strip():
            raise ValueError("must be a non-empty string")
        return value.strip()

    @field_validator("acquisition_source", mode="before")
    @classmethod
    def _default_source(cls, value):
        return AcquisitionSource.QR if value is None else value


class ActivationData(_ProviderData):
    external_invoice_id: str
    partner_user_id: Optional[str] = None
    affiliate_user_id: Optional[uuid.UUID] = None
    gross_revenue: Decimal
    currency: Optional[str] = None
    paid_at: Optional[datetime] = None
    transaction_hash: Optional[str] = None
    acquisition_source: Optional[AcquisitionSource] = None
    event_type: str = Field(default_factory=lambda: get_settings().pilot_event_type)

    @model_validator(mode="before")
    @classmethod
    def _resolve_gross_revenue(cls, data):
        # grossAmount is the legacy name, only used when grossRevenue is unusable
        if not isinstance(data, dict):
            return data
        for key in ("grossRevenue", "grossAmount"):
            value = data.get(key)
            if _is_positive_number(value):
                return {**data, "grossRevenue": Decimal(str(value))}
        raise ValueError("grossRevenue (or grossAmount) must be a positive number")

    @field_validator("external_invoice_id", mode="before")
    @classmethod
    def _required_string(cls, value):
        if not isinstance(value, str) or not value.strip():
            raise ValueError("must be a non-empty string")
        return value.strip()

    @field_validator("partner_user_id", "affiliate_user_id", "currency", "transaction_hash", mode="before")
    @classmethod
    def _optional_string(cls, value):
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("must be a string")
        return value.strip() or None

    @field_validator("paid_at", mode="before")
    @classmethod
    def _iso_date(cls, value):
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("must be an ISO-8601 date string")
        return value

    @field_validator("paid_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("event_type", mode="before")
    @classmethod
    def _pilot_event_type(cls, value):
        pilot = get_settings().pilot_event_type
        if value is None or (isinstance(value, str) and not value.strip()):
            return pilot
        if value != pilot:
            raise ValueError(f'eventType must be "{pilot}" during the pilot')
        return value


class SignupEvent(BaseModel):
    type: Literal["user.signup"]
    data: SignupData


class ActivationEvent(BaseModel):
    type: Literal["user.activated", "invoice.paid"]
    data: ActivationData


ProviderEvent = Annotated[Union[SignupEvent, ActivationEvent], Field(discriminator="type")]

_event_adapter = TypeAdapter(ProviderEvent)


def _describe(exc: PydanticValidationError) -> tuple[str, Optional[str]]:
    error = exc.errors()[0]
    loc = [str(part) for part in error["loc"] if part not in SUPPORTED_EVENT_TYPES]
    field = ".".join(loc) or None
    message = error["msg"].removeprefix("Value error, ")
    return (f"{field}: {message}" if field else message), field


def parse_event(document: Any) -> Union[SignupEvent, ActivationEvent]:
    """Validate a decoded webhook body into its typed event.

    Raises ValidationError with a field-level message.
    """
    if not isinstance(document, dict):
        raise ValidationError("Body must be a JSON object")

    event_type = document.get("type")
    if not event_type:
        raise ValidationError("Event type is required", field="type")
    if not isinstance(event_type, str) or event_type not in SUPPORTED_EVENT_TYPES:
        raise ValidationError(f"Unsupported event type: {event_type}", field="type")

    try:
        return _event_adapter.validate_python(document)
    except PydanticValidationError as exc:
        message, field = _describe(exc)
        raise ValidationError(message, field=field) from exc
