"""Juice Spend Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from juice.domain.juice_spend import JuiceSpend, SpendStatus


class JuiceSpendRepository(ABC):
    """
    Repository interface for JuiceSpend persistence

    Settlement workers claim rows with lock-and-skip selection; the manual
    trigger locks a single row with a blocking SELECT FOR UPDATE.
    """

    @abstractmethod
    async def create(self, spend: JuiceSpend) -> JuiceSpend:
        """Persist a new spend"""
        pass

    @abstractmethod
    async def get_by_id(self, spend_id: str, for_update: bool = False) -> Optional[JuiceSpend]:
        """
        Retrieve spend by ID

        Args:
            spend_id: Spend ID
            for_update: If True, lock the row with SELECT FOR UPDATE (blocking)

        Returns:
            JuiceSpend if found, None otherwise
        """
        pass

    @abstractmethod
    async def claim_pending(self, limit: int, max_retries: int, now: datetime) -> List[JuiceSpend]:
        """
        Claim up to limit pending spends for settlement

        Selects pending rows with retry_count < max_retries, oldest first,
        FOR UPDATE SKIP LOCKED, and marks them executing. The caller commits.
        """
        pass

    @abstractmethod
    async def mark_executing(self, spend: JuiceSpend, now: datetime) -> JuiceSpend:
        """Mark an already locked spend as executing"""
        pass

    @abstractmethod
    async def mark_completed(
        self,
        spend_id: str,
        tx_hash: str,
        crypto_amount: str,
        rate: Decimal,
        tokens_received: Optional[str],
        now: datetime,
    ) -> None:
        """Record a successful on-chain payment"""
        pass

    @abstractmethod
    async def record_failure(
        self, spend: JuiceSpend, status: SpendStatus, error_message: str, now: datetime
    ) -> JuiceSpend:
        """
        Record a failed attempt on a locked spend

        Increments retry_count, stamps last_retry_at, stores the error and
        sets status (pending for retry, failed when exhausted).
        """
        pass

    @abstractmethod
    async def count_by_status(self, status: SpendStatus) -> int:
        pass

    @abstractmethod
    async def list_by_status(
        self, status: SpendStatus, limit: int, offset: int
    ) -> Tuple[List[JuiceSpend], int]:
        """
        Paginated spends in a status, newest first

        Returns:
            Tuple of (spends, total count in that status)
        """
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: str) -> List[JuiceSpend]:
        """Retrieve a user's spends, newest first"""
        pass

    @abstractmethod
    async def get_stats(self, today_start: datetime, week_start: datetime) -> Dict[str, object]:
        """
        Aggregate dashboard figures

        Returns:
            Dict with pending_count, pending_total, executing_count,
            today_completed_count, today_completed_total,
            week_completed_count, week_completed_total, failed_count
        """
        pass
