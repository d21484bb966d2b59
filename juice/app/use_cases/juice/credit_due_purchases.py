"""CreditDuePurchases Use Case

Batch job: credits every purchase whose settlement delay has elapsed.
"""

import logging
from datetime import datetime
from typing import Optional
from juice.libs.result import Result, Return, Error
from juice.app.services.unit_of_work import UnitOfWork
from juice.app.repositories.juice_balance_repository import JuiceBalanceRepository
from juice.app.repositories.juice_purchase_repository import JuicePurchaseRepository
from juice.domain.juice_purchase import PurchaseStatus
from .credit_juice import CreditJuice
from .dtos import CreditDuePurchasesResultDTO, CreditJuiceCommandDTO

logger = logging.getLogger(__name__)


class CreditDuePurchases:
    """
    Use Case: Credit cleared purchases in batches

    Business Rules:
    1. Selects clearing purchases with clears_at <= now, FOR UPDATE SKIP LOCKED
    2. Each purchase is credited in its own transaction (CreditJuice)
    3. One failing purchase never blocks the rest of the batch
    4. A purchase another worker credited first is skipped, not counted as failed
    """

    def __init__(
        self,
        uow: UnitOfWork,
        balance_repo: JuiceBalanceRepository,
        purchase_repo: JuicePurchaseRepository,
    ):
        self.uow = uow
        self.purchase_repo = purchase_repo
        self.credit_juice = CreditJuice(uow, balance_repo, purchase_repo)

    async def execute(
        self, batch_size: int = 50, now: Optional[datetime] = None
    ) -> Result[CreditDuePurchasesResultDTO]:
        now = now or datetime.utcnow()

        try:
            due = await self.purchase_repo.get_due_for_credit(now, batch_size)
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to select purchases due for credit: {e}")
            return Return.err(
                Error(
                    code="CREDIT_BATCH_FAILED",
                    message="Failed to select purchases due for credit",
                    reason=str(e),
                )
            )

        logger.info(f"Found {len(due)} purchases due for credit")

        # Copy out before the first commit releases the row locks
        work = [(p.id, p.user_id, p.juice_amount) for p in due]

        credited = 0
        failed = 0
        for purchase_id, user_id, amount in work:
            result = await self.credit_juice.execute(
                CreditJuiceCommandDTO(user_id=user_id, purchase_id=purchase_id, amount=amount),
                now=now,
            )
            if result.is_ok():
                credited += 1
            elif result.error.code == "INVALID_PURCHASE_STATE":
                logger.info(f"Purchase {purchase_id} already handled: {result.error.message}")
            else:
                failed += 1
                logger.error(
                    f"Failed to credit purchase {purchase_id} for user {user_id}: "
                    f"{result.error.message} ({result.error.reason})"
                )

        try:
            still_pending = await self.purchase_repo.count_by_status(PurchaseStatus.CLEARING)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to count clearing purchases: {e}")
            still_pending = 0

        logger.info(
            f"Credit batch complete: credited={credited}, failed={failed}, "
            f"still_pending={still_pending}"
        )

        return Return.ok(
            CreditDuePurchasesResultDTO(
                credited=credited,
                failed=failed,
                still_pending=still_pending,
            )
        )
