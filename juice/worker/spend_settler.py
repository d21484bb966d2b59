"""Spend Settlement Background Worker

Periodically pays pending spends on-chain and alerts operators about
spends that failed permanently.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from juice.adapter.repositories import (
    SqlAlchemyJuiceBalanceRepository,
    SqlAlchemyJuiceSpendRepository,
)
from juice.adapter.services.notification_service import create_notification_service
from juice.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from juice.app.services.chain_client import ChainClientRegistry
from juice.app.services.notification_service import NotificationService
from juice.app.services.price_feed import PriceFeed
from juice.app.use_cases.juice import SettleSpends
from juice.app.use_cases.juice.dtos import SettlementBatchResultDTO
from juice.depends import build_price_feed, build_settlement_registry

logger = logging.getLogger(__name__)


class SpendSettlementWorker:
    """
    Background worker settling pending spends

    Features:
    - Lock-and-skip claiming, so several instances can run side by side
    - Bounded retries with refund on exhaustion
    - Notifications for permanently failed spends

    Usage:
        worker = SpendSettlementWorker()
        await worker.run_once()
        await worker.run_forever(interval_seconds=120)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        batch_size: Optional[int] = None,
        chain_registry: Optional[ChainClientRegistry] = None,
        price_feed: Optional[PriceFeed] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            batch_size: Spends per cycle (defaults to config)
            chain_registry: Chain clients (defaults to relayer clients from config)
            price_feed: Conversion rate source (defaults to Chainlink from config)
            notification_service: Alert sink (defaults to logging + optional webhook)
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.batch_size = batch_size or ApplicationConfig.SPEND_BATCH_SIZE
        self.max_retries = ApplicationConfig.JUICE_MAX_RETRIES

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        self.chain_registry = (
            chain_registry if chain_registry is not None
            else build_settlement_registry(ApplicationConfig)
        )
        self.price_feed = price_feed or build_price_feed(ApplicationConfig)
        self.notification_service = notification_service or create_notification_service(
            ApplicationConfig.SETTLEMENT_NOTIFICATION_WEBHOOK
        )

        logger.info(
            f"SpendSettlementWorker initialized with batch_size={self.batch_size}, "
            f"chains={self.chain_registry.supported_chain_ids()}"
        )

    async def run_once(self) -> SettlementBatchResultDTO:
        async with self.async_session_factory() as session:
            use_case = SettleSpends(
                uow=SqlAlchemyUnitOfWork(session),
                balance_repo=SqlAlchemyJuiceBalanceRepository(session),
                spend_repo=SqlAlchemyJuiceSpendRepository(session),
                price_feed=self.price_feed,
                chain_registry=self.chain_registry,
                max_retries=self.max_retries,
            )
            result = await use_case.execute(batch_size=self.batch_size)

            if result.is_err():
                logger.error(f"Spend settlement failed: {result.error.message}")
                raise RuntimeError(f"Spend settlement failed: {result.error.message}")

            response = result.value

        for failure in response.permanent_failures:
            await self.notification_service.send_settlement_failure_alert(failure)

        return response

    async def run_forever(self, interval_seconds: int = 120):
        logger.info(f"Starting continuous spend settlement with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Spend cycle complete. Succeeded {result.succeeded}, "
                    f"failed {result.failed}, still pending {result.still_pending}"
                )
            except Exception as e:
                logger.error(f"Spend cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.chain_registry.aclose()
        await self.price_feed.aclose()
        await self.engine.dispose()
        logger.info("SpendSettlementWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        python -m juice.worker.spend_settler --once
        python -m juice.worker.spend_settler --interval 120
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Spend Settlement Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.SPEND_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 120)"
    )
    args = parser.parse_args()

    worker = SpendSettlementWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Spend settlement complete:")
            print(f"  Succeeded: {result.succeeded}")
            print(f"  Failed: {result.failed}")
            print(f"  Still pending: {result.still_pending}")
            for failure in result.permanent_failures:
                print(f"  - Spend {failure.record_id} failed permanently: {failure.error_message}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
