"""Credit Expiration Repository Interface"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict
from juice.domain.credit_expiration import CreditExpiration


class CreditExpirationRepository(ABC):
    """Repository interface for the append-only expiration audit trail"""

    @abstractmethod
    async def create(self, expiration: CreditExpiration) -> CreditExpiration:
        """Append an expiration record"""
        pass

    @abstractmethod
    async def get_totals_by_user(self) -> Dict[str, Decimal]:
        """Sum of expired Juice per user"""
        pass
