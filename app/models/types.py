"""Column types and helpers shared by the ledger models."""
from datetime import datetime, timezone

from sqlalchemy import JSON, Numeric
from sqlalchemy.dialects.postgresql import JSONB

# Raw provider payloads: JSONB on PostgreSQL, plain JSON elsewhere
JSONPayload = JSON().with_variant(JSONB(), "postgresql")

# Monetary amounts, read back as Decimal
Money = Numeric(18, 6, asdecimal=True)
Rate = Numeric(6, 4, asdecimal=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
