"""SettleCashOuts Use Case

Batch job: transfers cash outs whose holding delay has passed. Same
claim / attempt / record flow as SettleSpends.
"""

import logging
from datetime import datetime
from typing import Optional
from juice.libs.result import Result, Return, Error
from juice.app.services.unit_of_work import UnitOfWork
from juice.app.services.chain_client import ChainClientRegistry
from juice.app.services.price_feed import PriceFeed
from juice.app.repositories.juice_balance_repository import JuiceBalanceRepository
from juice.app.repositories.juice_cash_out_repository import JuiceCashOutRepository
from juice.domain.juice_balance import LedgerKind
from juice.domain.juice_cash_out import JuiceCashOut, CashOutStatus
from .dtos import SettlementBatchResultDTO, SettlementFailureDTO
from .settlement import MAX_RETRIES, execute_transfer, permanent_failure_message

logger = logging.getLogger(__name__)


class SettleCashOuts:
    """
    Use Case: Settle available cash outs

    Business Rules:
    1. Claim: pending cash outs with available_at <= now and
       retry_count < max_retries, FOR UPDATE SKIP LOCKED, marked processing
    2. Per cash out: quote -> wei -> transfer to destination -> confirm
    3. Failure: retry_count += 1; refund and failed once exhausted
    """

    def __init__(
        self,
        uow: UnitOfWork,
        balance_repo: JuiceBalanceRepository,
        cash_out_repo: JuiceCashOutRepository,
        price_feed: PriceFeed,
        chain_registry: ChainClientRegistry,
        max_retries: int = MAX_RETRIES,
    ):
        self.uow = uow
        self.balance_repo = balance_repo
        self.cash_out_repo = cash_out_repo
        self.price_feed = price_feed
        self.chain_registry = chain_registry
        self.max_retries = max_retries

    async def execute(
        self, batch_size: int = 20, now: Optional[datetime] = None
    ) -> Result[SettlementBatchResultDTO]:
        if len(self.chain_registry) == 0:
            logger.warning("Settlement credentials not configured, skipping cash out batch")
            return Return.ok(SettlementBatchResultDTO())

        now = now or datetime.utcnow()

        try:
            claimed = await self.cash_out_repo.claim_available(batch_size, self.max_retries, now)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to claim available cash outs: {e}")
            return Return.err(
                Error(
                    code="SETTLE_CASH_OUTS_FAILED",
                    message="Failed to claim available cash outs",
                    reason=str(e),
                )
            )

        cash_out_ids = [cash_out.id for cash_out in claimed]
        logger.info(f"Claimed {len(cash_out_ids)} cash outs for settlement")

        result = SettlementBatchResultDTO()
        for cash_out_id in cash_out_ids:
            cash_out = await self.cash_out_repo.get_by_id(cash_out_id)
            if cash_out is None:
                continue
            settled = await self.settle(cash_out)

            if settled is not None and settled.status == CashOutStatus.COMPLETED:
                result.succeeded += 1
                continue

            result.failed += 1
            if settled is not None and settled.status == CashOutStatus.FAILED:
                result.permanent_failures.append(
                    SettlementFailureDTO(
                        kind=LedgerKind.CASH_OUT.value,
                        record_id=settled.id,
                        user_id=settled.user_id,
                        chain_id=settled.chain_id,
                        juice_amount=settled.juice_amount,
                        retry_count=settled.retry_count,
                        error_message=settled.error_message,
                        failed_at=settled.last_retry_at or settled.updated_at,
                    )
                )

        try:
            result.still_pending = await self.cash_out_repo.count_by_status(CashOutStatus.PENDING)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to count pending cash outs: {e}")

        logger.info(
            f"Cash out batch complete: succeeded={result.succeeded}, failed={result.failed}, "
            f"still_pending={result.still_pending}"
        )
        return Return.ok(result)

    async def settle(self, cash_out: JuiceCashOut) -> Optional[JuiceCashOut]:
        cash_out_id = cash_out.id

        try:
            transfer = await execute_transfer(
                self.price_feed,
                self.chain_registry,
                cash_out.chain_id,
                cash_out.destination_address,
                cash_out.juice_amount,
                {"kind": LedgerKind.CASH_OUT.value, "cash_out_id": cash_out_id},
            )
        except Exception as e:
            logger.error(f"Cash out {cash_out_id} attempt failed: {e}")
            await self.uow.rollback()
            return await self._record_failure(cash_out_id, str(e))

        now = datetime.utcnow()
        try:
            await self.cash_out_repo.mark_completed(
                cash_out_id,
                transfer.tx_hash,
                transfer.crypto_amount,
                transfer.rate,
                now,
            )
            completed = await self.cash_out_repo.get_by_id(cash_out_id)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.critical(
                f"Cash out {cash_out_id} paid in tx {transfer.tx_hash} but completion "
                f"was not recorded: {e}"
            )
            return None

        logger.info(
            f"Cash out {cash_out_id} completed: tx={transfer.tx_hash}, wei={transfer.crypto_amount}"
        )
        return completed

    async def _record_failure(self, cash_out_id: str, error: str) -> Optional[JuiceCashOut]:
        now = datetime.utcnow()

        try:
            cash_out = await self.cash_out_repo.get_by_id(cash_out_id, for_update=True)
            if cash_out is None or cash_out.status != CashOutStatus.PROCESSING:
                await self.uow.commit()
                logger.warning(f"Cash out {cash_out_id} is no longer processing, failure not recorded")
                return cash_out

            attempts = cash_out.retry_count + 1
            if attempts >= self.max_retries:
                await self.balance_repo.refund(
                    cash_out.user_id, cash_out.juice_amount, LedgerKind.CASH_OUT, now
                )
                cash_out = await self.cash_out_repo.record_failure(
                    cash_out, CashOutStatus.FAILED, permanent_failure_message(attempts, error), now
                )
                logger.error(
                    f"Cash out {cash_out_id} failed permanently after {attempts} attempts, "
                    f"refunded {cash_out.juice_amount} Juice to user {cash_out.user_id}"
                )
            else:
                cash_out = await self.cash_out_repo.record_failure(
                    cash_out, CashOutStatus.PENDING, error, now
                )
                logger.warning(
                    f"Cash out {cash_out_id} will retry (attempt {attempts}/{self.max_retries})"
                )

            await self.uow.commit()
            return cash_out

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to record failure for cash out {cash_out_id}: {e}")
            return None
