"""
Reconciliation queue for settlements that moved funds without a clean record.

Two cases land here:
- the platform fee leg failed after the seller was paid (order still created)
- the seller was paid but the order ledger write failed

Neither is retried automatically. Items wait for manual review.
"""
from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from lumina_checkout.amounts import from_base_units

logger = logging.getLogger(__name__)


class ReconciliationReason(str, Enum):
    """Why a settlement needs review."""
    FEE_TRANSFER_FAILED = "fee_transfer_failed"
    FUNDS_SENT_UNRECORDED = "funds_sent_unrecorded"


@dataclass
class ReconciliationItem:
    """One settlement awaiting manual review."""
    session_id: str
    seller_id: str
    reason: ReconciliationReason
    seller_amount: int
    fee_amount: int
    seller_transaction_id: Optional[str] = None
    fee_transaction_id: Optional[str] = None
    order_id: Optional[str] = None
    error_message: Optional[str] = None
    item_id: str = field(default_factory=lambda: f"recon_{uuid.uuid4().hex[:16]}")
    detected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_resolved: bool = False
    resolution_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "session_id": self.session_id,
            "seller_id": self.seller_id,
            "reason": self.reason.value,
            "seller_amount": str(from_base_units(self.seller_amount)),
            "fee_amount": str(from_base_units(self.fee_amount)),
            "seller_transaction_id": self.seller_transaction_id,
            "fee_transaction_id": self.fee_transaction_id,
            "order_id": self.order_id,
            "error_message": self.error_message,
            "detected_at": self.detected_at.isoformat(),
            "is_resolved": self.is_resolved,
            "resolution_notes": self.resolution_notes,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }


class ReconciliationQueue(ABC):
    """Abstract interface for reconciliation item storage."""

    @abstractmethod
    async def flag(self, item: ReconciliationItem) -> ReconciliationItem:
        """Record a settlement for review."""
        pass

    @abstractmethod
    async def pending(self) -> List[ReconciliationItem]:
        """Unresolved items, oldest first."""
        pass

    @abstractmethod
    async def resolve(self, item_id: str, notes: str) -> Optional[ReconciliationItem]:
        """Mark an item resolved. Returns None if the item is unknown."""
        pass


class InMemoryReconciliationQueue(ReconciliationQueue):
    """
    In-memory reconciliation queue for development and testing.

    Note: This queue is not suitable for production use.
    Items are lost when the process exits.
    """

    def __init__(self):
        self._items: Dict[str, ReconciliationItem] = {}

    async def flag(self, item: ReconciliationItem) -> ReconciliationItem:
        self._items[item.item_id] = item
        logger.warning(
            f"Reconciliation flagged: {item.reason.value} "
            f"session={item.session_id} seller={item.seller_id} "
            f"seller_tx={item.seller_transaction_id}"
        )
        return item

    async def pending(self) -> List[ReconciliationItem]:
        items = [item for item in self._items.values() if not item.is_resolved]
        return sorted(items, key=lambda item: item.detected_at)

    async def resolve(self, item_id: str, notes: str) -> Optional[ReconciliationItem]:
        item = self._items.get(item_id)
        if item is None:
            return None
        item.is_resolved = True
        item.resolution_notes = notes
        item.resolved_at = datetime.now(timezone.utc)
        logger.info(f"Reconciliation resolved: {item_id}")
        return item

    async def for_session(self, session_id: str) -> List[ReconciliationItem]:
        return [item for item in self._items.values() if item.session_id == session_id]
