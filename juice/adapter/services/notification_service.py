"""Notification Service Implementations

Provides concrete implementations for sending settlement failure alerts.
"""

import logging
from typing import Optional
import httpx
from juice.app.services.notification_service import NotificationService
from juice.app.use_cases.juice.dtos import SettlementFailureDTO

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs alerts

    Useful for development and testing, or as a fallback.
    """

    async def send_settlement_failure_alert(self, failure: SettlementFailureDTO) -> bool:
        """
        Log settlement failure alert

        Returns:
            Always True (logging never fails)
        """
        logger.warning(
            f"[SETTLEMENT FAILED] Kind: {failure.kind}, "
            f"Record: {failure.record_id}, "
            f"User: {failure.user_id}, "
            f"Chain: {failure.chain_id}, "
            f"Amount: {failure.juice_amount}, "
            f"Attempts: {failure.retry_count}, "
            f"Error: {failure.error_message}"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that sends alerts via HTTP webhook

    Sends JSON payload to configured webhook URL.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        """
        Initialize webhook notification service

        Args:
            webhook_url: URL to POST alerts to
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def send_settlement_failure_alert(self, failure: SettlementFailureDTO) -> bool:
        """
        Send settlement failure alert via webhook

        Returns:
            True if webhook call succeeded, False otherwise
        """
        payload = {
            "type": "settlement_failure",
            "kind": failure.kind,
            "record_id": failure.record_id,
            "user_id": failure.user_id,
            "chain_id": failure.chain_id,
            "juice_amount": str(failure.juice_amount),
            "retry_count": failure.retry_count,
            "error_message": failure.error_message,
            "failed_at": failure.failed_at.isoformat(),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(
                    f"Webhook notification sent for {failure.kind} {failure.record_id} "
                    f"to {self.webhook_url}"
                )
                return True
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to send webhook notification for {failure.kind} {failure.record_id}: {e}"
            )
            return False
        except Exception as e:
            logger.error(
                f"Unexpected error sending webhook notification for "
                f"{failure.kind} {failure.record_id}: {e}"
            )
            return False


class CompositeNotificationService(NotificationService):
    """Notification service that delegates to multiple services"""

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def send_settlement_failure_alert(self, failure: SettlementFailureDTO) -> bool:
        """
        Returns:
            True if at least one service succeeded, False otherwise
        """
        success = False
        for service in self.services:
            try:
                if await service.send_settlement_failure_alert(failure):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        webhook_url: Optional webhook URL. If provided, creates composite
                     service with logging + webhook. Otherwise, just logging.
    """
    services: list[NotificationService] = [LoggingNotificationService()]

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
