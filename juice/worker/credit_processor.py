"""Purchase Credit Background Worker

Periodically credits purchases whose settlement delay has elapsed.
Can be run as a standalone script or integrated with a scheduler.
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
    SqlAlchemyJuicePurchaseRepository,
)
from juice.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from juice.app.use_cases.juice import CreditDuePurchases
from juice.app.use_cases.juice.dtos import CreditDuePurchasesResultDTO

logger = logging.getLogger(__name__)


class CreditProcessorWorker:
    """
    Background worker crediting cleared purchases

    Usage:
        worker = CreditProcessorWorker()
        await worker.run_once()
        await worker.run_forever(interval_seconds=300)
    """

    def __init__(self, db_uri: Optional[str] = None, batch_size: Optional[int] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.batch_size = batch_size or ApplicationConfig.CREDIT_BATCH_SIZE

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info(f"CreditProcessorWorker initialized with batch_size={self.batch_size}")

    async def run_once(self) -> CreditDuePurchasesResultDTO:
        async with self.async_session_factory() as session:
            use_case = CreditDuePurchases(
                uow=SqlAlchemyUnitOfWork(session),
                balance_repo=SqlAlchemyJuiceBalanceRepository(session),
                purchase_repo=SqlAlchemyJuicePurchaseRepository(session),
            )
            result = await use_case.execute(batch_size=self.batch_size)

            if result.is_err():
                logger.error(f"Credit batch failed: {result.error.message}")
                raise RuntimeError(f"Credit batch failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: int = 300):
        logger.info(f"Starting continuous purchase crediting with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Credit cycle complete. Credited {result.credited}, "
                    f"failed {result.failed}, still pending {result.still_pending}"
                )
            except Exception as e:
                logger.error(f"Credit cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("CreditProcessorWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        python -m juice.worker.credit_processor --once
        python -m juice.worker.credit_processor --interval 300
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Purchase Credit Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.CREDIT_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 300)"
    )
    args = parser.parse_args()

    worker = CreditProcessorWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Credit batch complete:")
            print(f"  Credited: {result.credited}")
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
