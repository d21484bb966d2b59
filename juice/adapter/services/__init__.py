from .unit_of_work import SqlAlchemyUnitOfWork
from .notification_service import (
    LoggingNotificationService,
    WebhookNotificationService,
    CompositeNotificationService,
    create_notification_service,
)
from .chain_client import RelayerChainClient, build_chain_registry
from .price_feed import ChainlinkPriceFeed

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingNotificationService",
    "WebhookNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
    "RelayerChainClient",
    "build_chain_registry",
    "ChainlinkPriceFeed",
]
