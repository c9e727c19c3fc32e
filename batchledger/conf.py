"""
BatchLedger configuration.

Usage in settings.py:
    BATCHLEDGER = {
        "DEFAULT_LOW_STOCK_THRESHOLD": 10,
        "ATOMIC_TRANSFERS": True,
        "TRANSACTION_ID_COLLISION": "suffix",
        "DEFAULT_ACTOR": "Unknown",
        "TRANSFER_REASON": "Transfer",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class BatchLedgerSettings:
    """BatchLedger configuration settings."""

    # Threshold used when neither the warehouse nor the product sets one
    DEFAULT_LOW_STOCK_THRESHOLD: int = 10

    # Run transfers in a single DB transaction (False = persisted-intent saga)
    ATOMIC_TRANSFERS: bool = True

    # What to do when a deterministic transaction id already exists:
    # "suffix" appends -2, -3, ...; "reject" raises DuplicateTransactionError
    TRANSACTION_ID_COLLISION: str = "suffix"

    # Attribution used when no user or name is supplied
    DEFAULT_ACTOR: str = "Unknown"

    # Reason recorded on transfer transactions and transfer-created batches
    TRANSFER_REASON: str = "Transfer"


def get_batchledger_settings() -> BatchLedgerSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "BATCHLEDGER", {})
    return BatchLedgerSettings(**{
        k: v for k, v in user_settings.items()
        if k in BatchLedgerSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_batchledger_settings(), name)


batchledger_settings = _LazySettings()
