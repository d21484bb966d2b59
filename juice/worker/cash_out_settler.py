"""Cash Out Settlement Background Worker

Periodically transfers cash outs whose holding delay has passed.
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
    SqlAlchemyJuiceCashOutRepository,
)
from juice.adapter.services.notification_service import create_notification_service
from juice.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from juice.app.services.chain_client import ChainClientRegistry
from juice.app.services.notification_service import NotificationService
from juice.app.services.price_feed import PriceFeed
from juice.app.use_cases.juice import SettleCashOuts
from juice.app.use_cases.juice.dtos import SettlementBatchResultDTO
from juice.depends import build_price_feed, build_settlement_registry

logger = logging.getLogger(__name__)


class CashOutSettlementWorker:
    """
    Background worker settling available cash outs

    Usage:
        worker = CashOutSettlementWorker()
        await worker.run_once()
        await worker.run_forever(interval_seconds=300)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        batch_size: Optional[int] = None,
        chain_registry: Optional[ChainClientRegistry] = None,
        price_feed: Optional[PriceFeed] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.batch_size = batch_size or ApplicationConfig.CASH_OUT_BATCH_SIZE
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

        logger.info(f"CashOutSettlementWorker initialized with batch_size={self.batch_size}")

    async def run_once(self) -> SettlementBatchResultDTO:
        async with self.async_session_factory() as session:
            use_case = SettleCashOuts(
                uow=SqlAlchemyUnitOfWork(session),
                balance_repo=SqlAlchemyJuiceBalanceRepository(session),
                cash_out_repo=SqlAlchemyJuiceCashOutRepository(session),
                price_feed=self.price_feed,
                chain_registry=self.chain_registry,
                max_retries=self.max_retries,
            )
            result = await use_case.execute(batch_size=self.batch_size)

            if result.is_err():
                logger.error(f"Cash out settlement failed: {result.error.message}")
                raise RuntimeError(f"Cash out settlement failed: {result.error.message}")

            response = result.value

        for failure in response.permanent_failures:
            await self.notification_service.send_settlement_failure_alert(failure)

        return response

    async def run_forever(self, interval_seconds: int = 300):
        logger.info(f"Starting continuous cash out settlement with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Cash out cycle complete. Succeeded {result.succeeded}, "
                    f"failed {result.failed}, still pending {result.still_pending}"
                )
            except Exception as e:
                logger.error(f"Cash out cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.chain_registry.aclose()
        await self.price_feed.aclose()
        await self.engine.dispose()
        logger.info("CashOutSettlementWorker shutdown complete")


async def main():
    """
    Usage:
        python -m juice.worker.cash_out_settler --once
        python -m juice.worker.cash_out_settler --interval 300
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Cash Out Settlement Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.CASH_OUT_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 300)"
    )
    args = parser.parse_args()

    worker = CashOutSettlementWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Cash out settlement complete:")
            print(f"  Succeeded: {result.succeeded}")
            print(f"  Failed: {result.failed}")
            print(f"  Still pending: {result.still_pending}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
