"""Unsigned purchase transaction building."""

from gamebridge.services.purchase.builder import (
    PurchaseTransaction,
    UnsignedTxBuilder,
)
from gamebridge.services.purchase.schemas import PurchaseResponse

__all__ = [
    "PurchaseResponse",
    "PurchaseTransaction",
    "UnsignedTxBuilder",
]
