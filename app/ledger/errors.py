"""Ledger error taxonomy.

The core raises these; the API layer decides the HTTP status.
"""
from decimal import Decimal
from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""


class AuthenticationError(LedgerError):
    """Webhook signature, timestamp or credentials rejected.

    ``reason`` is for logs only and must not be echoed to the caller.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ValidationError(LedgerError):
    """Malformed input or a rule violation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(LedgerError):
    """A referenced shop, provider, affiliate or record does not exist."""

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InsufficientBalanceError(LedgerError):
    """Withdrawal amount exceeds the available balance."""

    def __init__(self, requested: Decimal, available: Decimal):
        super().__init__(f"Insufficient available balance: requested {requested}, available {available}")
        self.requested = requested
        self.available = available
