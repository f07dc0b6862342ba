"""Background ledger jobs."""
from app.jobs.commissions import CommissionDerivationJob

__all__ = [
    "CommissionDerivationJob",
]
