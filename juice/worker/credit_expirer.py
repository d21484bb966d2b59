"""Credit Expiration Background Worker

Zeroes balances inactive for longer than the retention period.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from juice.adapter.repositories import (
    SqlAlchemyCreditExpirationRepository,
    SqlAlchemyJuiceBalanceRepository,
)
from juice.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from juice.app.use_cases.juice import ExpireInactiveCredits
from juice.app.use_cases.juice.dtos import ExpirationResultDTO

logger = logging.getLogger(__name__)


class CreditExpirationWorker:
    def __init__(
        self,
        db_uri: Optional[str] = None,
        retention_days: Optional[int] = None,
        batch_size: Optional[int] = None,
    ):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.retention_days = retention_days or ApplicationConfig.JUICE_EXPIRATION_DAYS
        self.batch_size = batch_size or ApplicationConfig.EXPIRATION_BATCH_SIZE

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info(
            f"CreditExpirationWorker initialized with retention_days={self.retention_days}, "
            f"batch_size={self.batch_size}"
        )

    async def run_once(self) -> ExpirationResultDTO:
        async with self.async_session_factory() as session:
            use_case = ExpireInactiveCredits(
                uow=SqlAlchemyUnitOfWork(session),
                balance_repo=SqlAlchemyJuiceBalanceRepository(session),
                expiration_repo=SqlAlchemyCreditExpirationRepository(session),
            )
            result = await use_case.execute(
                retention_days=self.retention_days, batch_size=self.batch_size
            )

            if result.is_err():
                logger.error(f"Expiration sweep failed: {result.error.message}")
                raise RuntimeError(f"Expiration sweep failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: int = 86400):
        logger.info(f"Starting continuous credit expiration with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Expiration cycle complete. Expired {result.expired} balances "
                    f"({result.total_amount} Juice), failed {result.failed}"
                )
            except Exception as e:
                logger.error(f"Expiration cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("CreditExpirationWorker shutdown complete")


async def main():
    """
    Usage:
        python -m juice.worker.credit_expirer --once
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Credit Expiration Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.EXPIRATION_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 86400 = 24 hours)"
    )
    args = parser.parse_args()

    worker = CreditExpirationWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Expiration sweep complete:")
            print(f"  Expired: {result.expired}")
            print(f"  Total amount: {result.total_amount}")
            print(f"  Failed: {result.failed}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
