"""Juice Balance Repository Interface

Defines the contract for balance persistence. Every mutation is an atomic
UPDATE against the balance row; callers compose them inside a unit of work
together with the status write they belong to.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from juice.domain.juice_balance import JuiceBalance, LedgerKind


class JuiceBalanceRepository(ABC):
    """Repository interface for JuiceBalance persistence"""

    @abstractmethod
    async def get_by_user_id(self, user_id: str, for_update: bool = False) -> Optional[JuiceBalance]:
        """
        Retrieve balance by user ID

        Args:
            user_id: User identifier
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            JuiceBalance if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_or_create(self, user_id: str) -> JuiceBalance:
        """
        Return the user's balance, inserting a zero balance if absent

        A concurrent insert of the same row is not an error: the existing
        row is returned.
        """
        pass

    @abstractmethod
    async def credit(self, user_id: str, amount: Decimal, now: datetime) -> None:
        """
        Add purchased Juice: balance and lifetime_purchased grow by amount,
        last_activity_at is stamped
        """
        pass

    @abstractmethod
    async def debit(self, user_id: str, amount: Decimal, kind: LedgerKind, now: datetime) -> bool:
        """
        Conditionally remove Juice from the balance

        Single atomic UPDATE guarded by balance >= amount. Increments the
        lifetime counter matching kind.

        Args:
            user_id: User identifier
            amount: Juice to remove (> 0)
            kind: Which lifetime counter the debit belongs to
            now: Activity timestamp

        Returns:
            True if the row was updated, False if the balance was insufficient
            (or the row does not exist)
        """
        pass

    @abstractmethod
    async def refund(self, user_id: str, amount: Decimal, kind: LedgerKind, now: datetime) -> None:
        """
        Return previously debited Juice

        Unconditionally increments balance and decrements the lifetime
        counter matching kind.
        """
        pass

    @abstractmethod
    async def get_inactive_with_balance(
        self, inactive_before: datetime, limit: int
    ) -> List[JuiceBalance]:
        """
        Select balances > 0 whose last activity is older than inactive_before

        Uses lock-and-skip (FOR UPDATE SKIP LOCKED) so concurrent sweepers
        never pick the same rows.
        """
        pass

    @abstractmethod
    async def zero_balance(self, user_id: str, now: datetime) -> None:
        """Set balance to zero, leaving lifetime counters untouched"""
        pass

    @abstractmethod
    async def get_all(self) -> List[JuiceBalance]:
        """Retrieve every balance row (reconciliation)"""
        pass
