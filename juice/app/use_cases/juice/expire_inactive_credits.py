"""ExpireInactiveCredits Use Case

Batch job: zeroes balances that have been inactive longer than the
retention period and keeps an audit row for each.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from juice.libs.result import Result, Return, Error
from juice.app.services.unit_of_work import UnitOfWork
from juice.app.repositories.juice_balance_repository import JuiceBalanceRepository
from juice.app.repositories.credit_expiration_repository import CreditExpirationRepository
from juice.domain.credit_expiration import CreditExpiration
from .dtos import ExpirationResultDTO

logger = logging.getLogger(__name__)

RETENTION_DAYS = 180


class ExpireInactiveCredits:
    """
    Use Case: Expire stale balances

    Business Rules:
    1. Candidates: balance > 0 and last_activity_at < now - retention,
       selected FOR UPDATE SKIP LOCKED
    2. Each balance is re-locked and re-checked in its own transaction;
       activity since selection spares it
    3. A CreditExpiration with the expired amount is written in the same
       transaction that zeroes the balance
    4. Lifetime counters and last_activity_at are not touched
    """

    def __init__(
        self,
        uow: UnitOfWork,
        balance_repo: JuiceBalanceRepository,
        expiration_repo: CreditExpirationRepository,
    ):
        self.uow = uow
        self.balance_repo = balance_repo
        self.expiration_repo = expiration_repo

    async def execute(
        self,
        retention_days: int = RETENTION_DAYS,
        batch_size: int = 100,
        now: Optional[datetime] = None,
    ) -> Result[ExpirationResultDTO]:
        now = now or datetime.utcnow()
        cutoff = now - timedelta(days=retention_days)

        try:
            candidates = await self.balance_repo.get_inactive_with_balance(cutoff, batch_size)
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to select inactive balances: {e}")
            return Return.err(
                Error(
                    code="EXPIRATION_FAILED",
                    message="Failed to select inactive balances",
                    reason=str(e),
                )
            )

        user_ids = [balance.user_id for balance in candidates]
        logger.info(f"Found {len(user_ids)} balances inactive since {cutoff.isoformat()}")

        expired = 0
        failed = 0
        total_amount = Decimal("0")

        for user_id in user_ids:
            try:
                balance = await self.balance_repo.get_by_user_id(user_id, for_update=True)

                if not balance or balance.balance <= 0 or balance.last_activity_at >= cutoff:
                    await self.uow.rollback()
                    continue

                amount = balance.balance
                await self.expiration_repo.create(
                    CreditExpiration(
                        user_id=user_id,
                        amount=amount,
                        last_activity_at=balance.last_activity_at,
                        created_at=now,
                    )
                )
                await self.balance_repo.zero_balance(user_id, now)
                await self.uow.commit()

                expired += 1
                total_amount += amount
                logger.info(
                    f"Expired {amount} Juice for user {user_id} "
                    f"(inactive since {balance.last_activity_at.isoformat()})"
                )

            except Exception as e:
                await self.uow.rollback()
                failed += 1
                logger.error(f"Failed to expire balance for user {user_id}: {e}")

        logger.info(
            f"Expiration sweep complete: expired={expired}, total_amount={total_amount}, "
            f"failed={failed}"
        )

        return Return.ok(
            ExpirationResultDTO(expired=expired, total_amount=total_amount, failed=failed)
        )
