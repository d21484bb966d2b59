"""ProcessSingleSpend Use Case

Admin trigger: settle one spend immediately instead of waiting for the
next batch.
"""

import logging
from datetime import datetime
from typing import Optional
from juice.libs.result import Result, Return, Error
from juice.app.services.unit_of_work import UnitOfWork
from juice.app.services.chain_client import ChainClientRegistry
from juice.app.services.price_feed import PriceFeed
from juice.app.repositories.juice_balance_repository import JuiceBalanceRepository
from juice.app.repositories.juice_spend_repository import JuiceSpendRepository
from juice.domain.juice_spend import SpendStatus
from .dtos import SpendResponseDTO
from .mappers import to_spend_dto
from .settle_spends import SettleSpends
from .settlement import MAX_RETRIES

logger = logging.getLogger(__name__)


class ProcessSingleSpend:
    """
    Use Case: Settle one spend on demand

    Business Rules:
    1. Blocking SELECT FOR UPDATE on the spend; a batch worker that already
       claimed it has moved it out of pending, so it is rejected here
    2. Only pending spends are processed
    3. Same attempt and failure bookkeeping as SettleSpends
    """

    def __init__(
        self,
        uow: UnitOfWork,
        balance_repo: JuiceBalanceRepository,
        spend_repo: JuiceSpendRepository,
        price_feed: PriceFeed,
        chain_registry: ChainClientRegistry,
        max_retries: int = MAX_RETRIES,
    ):
        self.uow = uow
        self.spend_repo = spend_repo
        self.chain_registry = chain_registry
        self.max_retries = max_retries
        self.settler = SettleSpends(
            uow, balance_repo, spend_repo, price_feed, chain_registry, max_retries
        )

    async def execute(
        self, spend_id: str, now: Optional[datetime] = None
    ) -> Result[SpendResponseDTO]:
        """
        Execute single spend settlement

        Returns:
            Result[SpendResponseDTO]: completed spend, or a spend with status
            failed when this attempt exhausted its retries

        Errors:
            SETTLEMENT_NOT_CONFIGURED: No chain clients registered
            SPEND_NOT_FOUND: No such spend
            SPEND_ALREADY_COMPLETED / SPEND_REFUNDED / INVALID_STATE: not pending
            SPEND_FAILED_WILL_RETRY: Attempt failed, spend back to pending
        """
        if len(self.chain_registry) == 0:
            return Return.err(
                Error(
                    code="SETTLEMENT_NOT_CONFIGURED",
                    message="Settlement credentials are not configured",
                )
            )

        now = now or datetime.utcnow()

        try:
            spend = await self.spend_repo.get_by_id(spend_id, for_update=True)

            if not spend:
                await self.uow.rollback()
                return Return.err(
                    Error(code="SPEND_NOT_FOUND", message=f"Spend {spend_id} not found")
                )

            if spend.status != SpendStatus.PENDING:
                error = self._status_error(spend_id, spend.status)
                await self.uow.rollback()
                return Return.err(error)

            spend = await self.spend_repo.mark_executing(spend, now)
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="PROCESS_SPEND_FAILED",
                    message=f"Failed to process spend {spend_id}",
                    reason=str(e),
                )
            )

        settled = await self.settler.settle(spend)

        if settled is None:
            return Return.err(
                Error(
                    code="PROCESS_SPEND_FAILED",
                    message=f"Outcome of spend {spend_id} could not be recorded",
                )
            )

        if settled.status == SpendStatus.PENDING:
            return Return.err(
                Error(
                    code="SPEND_FAILED_WILL_RETRY",
                    message=(
                        f"Spend failed (attempt {settled.retry_count}/{self.max_retries}): "
                        f"{settled.error_message}"
                    ),
                )
            )

        logger.info(f"Manually processed spend {spend_id}: {settled.status.value}")
        return Return.ok(to_spend_dto(settled))

    @staticmethod
    def _status_error(spend_id: str, status: SpendStatus) -> Error:
        if status == SpendStatus.COMPLETED:
            return Error(code="SPEND_ALREADY_COMPLETED", message=f"Spend {spend_id} already completed")
        if status == SpendStatus.REFUNDED:
            return Error(code="SPEND_REFUNDED", message=f"Spend {spend_id} was refunded")
        return Error(
            code="INVALID_STATE",
            message=f"Spend {spend_id} is {status.value}, only pending spends can be processed",
        )
