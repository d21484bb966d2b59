"""Juice Purchase Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence
from juice.domain.juice_purchase import JuicePurchase, PurchaseStatus


class JuicePurchaseRepository(ABC):
    """Repository interface for JuicePurchase persistence"""

    @abstractmethod
    async def create(self, purchase: JuicePurchase) -> JuicePurchase:
        """Persist a new purchase"""
        pass

    @abstractmethod
    async def get_by_id(self, purchase_id: str, for_update: bool = False) -> Optional[JuicePurchase]:
        """
        Retrieve purchase by ID

        Args:
            purchase_id: Purchase ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            JuicePurchase if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_payment_reference(self, payment_reference: str) -> Optional[JuicePurchase]:
        """Retrieve purchase by external payment reference"""
        pass

    @abstractmethod
    async def get_due_for_credit(self, now: datetime, limit: int) -> List[JuicePurchase]:
        """
        Select clearing purchases with clears_at <= now

        Uses lock-and-skip so concurrent workers never share a purchase.
        """
        pass

    @abstractmethod
    async def mark_credited(self, purchase_id: str, now: datetime) -> None:
        """Set status to credited and stamp credited_at"""
        pass

    @abstractmethod
    async def transition_by_payment_reference(
        self,
        payment_reference: str,
        new_status: PurchaseStatus,
        from_statuses: Sequence[PurchaseStatus],
    ) -> bool:
        """
        Move a purchase to new_status only if it is in one of from_statuses

        Returns:
            True if a row changed, False otherwise
        """
        pass

    @abstractmethod
    async def count_by_status(self, status: PurchaseStatus) -> int:
        """Count purchases in the given status"""
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: str) -> List[JuicePurchase]:
        """Retrieve a user's purchases, newest first"""
        pass
