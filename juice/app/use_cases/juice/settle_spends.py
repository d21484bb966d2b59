"""SettleSpends Use Case

Batch job: pays pending spends on-chain.

Claiming happens in its own short transaction so the slow network work
(price quote, submission, confirmation) never holds row locks. Each spend
then commits its own outcome.
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
from juice.domain.juice_balance import LedgerKind
from juice.domain.juice_spend import JuiceSpend, SpendStatus
from .dtos import SettlementBatchResultDTO, SettlementFailureDTO
from .settlement import MAX_RETRIES, execute_transfer, permanent_failure_message

logger = logging.getLogger(__name__)


def spend_failure_dto(spend: JuiceSpend) -> SettlementFailureDTO:
    return SettlementFailureDTO(
        kind=LedgerKind.SPEND.value,
        record_id=spend.id,
        user_id=spend.user_id,
        chain_id=spend.chain_id,
        juice_amount=spend.juice_amount,
        retry_count=spend.retry_count,
        error_message=spend.error_message,
        failed_at=spend.last_retry_at or spend.updated_at,
    )


class SettleSpends:
    """
    Use Case: Settle pending spends

    Business Rules:
    1. Claim: pending spends with retry_count < max_retries, oldest first,
       FOR UPDATE SKIP LOCKED, marked executing and committed
    2. Per spend: quote -> wei -> submit -> confirm
    3. Success: completed with tx_hash, crypto_amount, rate, tokens_received
    4. Failure: retry_count += 1; back to pending, or refunded and failed
       once retry_count reaches max_retries (exactly one refund)
    5. A spend paid on-chain is never put back to pending
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
        self.balance_repo = balance_repo
        self.spend_repo = spend_repo
        self.price_feed = price_feed
        self.chain_registry = chain_registry
        self.max_retries = max_retries

    async def execute(
        self, batch_size: int = 20, now: Optional[datetime] = None
    ) -> Result[SettlementBatchResultDTO]:
        """
        Execute one settlement batch

        Args:
            batch_size: Maximum spends to claim
            now: Claim timestamp (defaults to utcnow)

        Returns:
            Result[SettlementBatchResultDTO]: Counts plus permanently failed spends
        """
        if len(self.chain_registry) == 0:
            logger.warning("Settlement credentials not configured, skipping spend batch")
            return Return.ok(SettlementBatchResultDTO())

        now = now or datetime.utcnow()

        try:
            claimed = await self.spend_repo.claim_pending(batch_size, self.max_retries, now)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to claim pending spends: {e}")
            return Return.err(
                Error(
                    code="SETTLE_SPENDS_FAILED",
                    message="Failed to claim pending spends",
                    reason=str(e),
                )
            )

        # A failed attempt rolls back, which expires every loaded spend
        spend_ids = [spend.id for spend in claimed]
        logger.info(f"Claimed {len(spend_ids)} spends for settlement")

        result = SettlementBatchResultDTO()
        for spend_id in spend_ids:
            spend = await self.spend_repo.get_by_id(spend_id)
            if spend is None:
                continue
            settled = await self.settle(spend)

            if settled is not None and settled.status == SpendStatus.COMPLETED:
                result.succeeded += 1
                continue

            result.failed += 1
            if settled is not None and settled.status == SpendStatus.FAILED:
                result.permanent_failures.append(spend_failure_dto(settled))

        try:
            result.still_pending = await self.spend_repo.count_by_status(SpendStatus.PENDING)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to count pending spends: {e}")

        logger.info(
            f"Spend batch complete: succeeded={result.succeeded}, failed={result.failed}, "
            f"still_pending={result.still_pending}"
        )
        return Return.ok(result)

    async def settle(self, spend: JuiceSpend) -> Optional[JuiceSpend]:
        """
        Run one attempt for a spend already marked executing

        Returns:
            The spend after the attempt was recorded (completed, pending or
            failed), or None if the outcome could not be recorded
        """
        spend_id = spend.id

        try:
            transfer = await execute_transfer(
                self.price_feed,
                self.chain_registry,
                spend.chain_id,
                spend.beneficiary_address,
                spend.juice_amount,
                {
                    "kind": LedgerKind.SPEND.value,
                    "spend_id": spend_id,
                    "project_id": spend.project_id,
                    "memo": spend.memo,
                },
            )
        except Exception as e:
            logger.error(f"Spend {spend_id} attempt failed: {e}")
            await self.uow.rollback()
            return await self._record_failure(spend_id, str(e))

        now = datetime.utcnow()
        try:
            await self.spend_repo.mark_completed(
                spend_id,
                transfer.tx_hash,
                transfer.crypto_amount,
                transfer.rate,
                transfer.tokens_received,
                now,
            )
            completed = await self.spend_repo.get_by_id(spend_id)
            await self.uow.commit()
        except Exception as e:
            # Paid on-chain but not recorded: stays executing for manual reconciliation
            await self.uow.rollback()
            logger.critical(
                f"Spend {spend_id} paid in tx {transfer.tx_hash} but completion was not recorded: {e}"
            )
            return None

        logger.info(
            f"Spend {spend_id} completed: tx={transfer.tx_hash}, "
            f"wei={transfer.crypto_amount}, rate={transfer.rate}"
        )
        return completed

    async def _record_failure(self, spend_id: str, error: str) -> Optional[JuiceSpend]:
        now = datetime.utcnow()

        try:
            spend = await self.spend_repo.get_by_id(spend_id, for_update=True)
            if spend is None or spend.status != SpendStatus.EXECUTING:
                await self.uow.commit()
                logger.warning(f"Spend {spend_id} is no longer executing, failure not recorded")
                return spend

            attempts = spend.retry_count + 1
            if attempts >= self.max_retries:
                await self.balance_repo.refund(
                    spend.user_id, spend.juice_amount, LedgerKind.SPEND, now
                )
                spend = await self.spend_repo.record_failure(
                    spend, SpendStatus.FAILED, permanent_failure_message(attempts, error), now
                )
                logger.error(
                    f"Spend {spend_id} failed permanently after {attempts} attempts, "
                    f"refunded {spend.juice_amount} Juice to user {spend.user_id}"
                )
            else:
                spend = await self.spend_repo.record_failure(
                    spend, SpendStatus.PENDING, error, now
                )
                logger.warning(
                    f"Spend {spend_id} will retry (attempt {attempts}/{self.max_retries})"
                )

            await self.uow.commit()
            return spend

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to record failure for spend {spend_id}: {e}")
            return None
