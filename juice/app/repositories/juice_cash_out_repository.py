"""Juice Cash Out Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from juice.domain.juice_cash_out import JuiceCashOut, CashOutStatus


class JuiceCashOutRepository(ABC):
    """Repository interface for JuiceCashOut persistence"""

    @abstractmethod
    async def create(self, cash_out: JuiceCashOut) -> JuiceCashOut:
        """Persist a new cash out"""
        pass

    @abstractmethod
    async def get_by_id(self, cash_out_id: str, for_update: bool = False) -> Optional[JuiceCashOut]:
        """
        Retrieve cash out by ID

        Args:
            cash_out_id: Cash out ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            JuiceCashOut if found, None otherwise
        """
        pass

    @abstractmethod
    async def claim_available(self, limit: int, max_retries: int, now: datetime) -> List[JuiceCashOut]:
        """
        Claim up to limit pending cash outs whose holding delay has passed

        Selects pending rows with available_at <= now and
        retry_count < max_retries, earliest available first,
        FOR UPDATE SKIP LOCKED, and marks them processing. The caller commits.
        """
        pass

    @abstractmethod
    async def mark_completed(
        self,
        cash_out_id: str,
        tx_hash: str,
        crypto_amount: str,
        rate: Decimal,
        now: datetime,
    ) -> None:
        """Record a successful transfer"""
        pass

    @abstractmethod
    async def record_failure(
        self, cash_out: JuiceCashOut, status: CashOutStatus, error_message: str, now: datetime
    ) -> JuiceCashOut:
        """Record a failed attempt on a locked cash out (see JuiceSpendRepository)"""
        pass

    @abstractmethod
    async def mark_cancelled(self, cash_out: JuiceCashOut, now: datetime) -> JuiceCashOut:
        """Set a locked pending cash out to cancelled"""
        pass

    @abstractmethod
    async def count_by_status(self, status: CashOutStatus) -> int:
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: str) -> List[JuiceCashOut]:
        """Retrieve a user's cash outs, newest first"""
        pass
