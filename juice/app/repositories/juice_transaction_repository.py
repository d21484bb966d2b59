"""Juice Transaction History Repository Interface"""

from abc import ABC, abstractmethod
from typing import List, Tuple, Union
from juice.domain.juice_cash_out import JuiceCashOut
from juice.domain.juice_purchase import JuicePurchase
from juice.domain.juice_spend import JuiceSpend

HistoryEntry = Union[JuicePurchase, JuiceSpend, JuiceCashOut]


class JuiceTransactionRepository(ABC):
    """
    Read-only view over a user's purchases, spends and cash outs

    Ordering and pagination happen in the database.
    """

    @abstractmethod
    async def get_by_user_id(
        self, user_id: str, limit: int, offset: int
    ) -> Tuple[List[HistoryEntry], int]:
        """
        Page of a user's history, newest first

        Args:
            user_id: User identifier
            limit: Page size
            offset: Entries to skip

        Returns:
            (entries on this page, total entries across all pages)
        """
        pass
