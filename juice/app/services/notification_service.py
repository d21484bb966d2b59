"""Notification Service Interface

Defines the contract for alerting operators about settlements that
failed permanently (retries exhausted, Juice refunded).
"""

from abc import ABC, abstractmethod
from juice.app.use_cases.juice.dtos import SettlementFailureDTO


class NotificationService(ABC):
    """
    Abstract notification service for sending alerts

    Implementations can send notifications via:
    - Logging
    - Webhook (HTTP POST)
    """

    @abstractmethod
    async def send_settlement_failure_alert(self, failure: SettlementFailureDTO) -> bool:
        """
        Send alert for a permanently failed settlement

        Args:
            failure: Failed spend or cash out

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass
