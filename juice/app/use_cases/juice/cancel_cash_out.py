"""CancelCashOut Use Case

Lets a user cancel a cash out that has not been picked up for processing.
"""

import logging
from datetime import datetime
from typing import Optional
from juice.libs.result import Result, Return, Error
from juice.app.services.unit_of_work import UnitOfWork
from juice.app.repositories.juice_balance_repository import JuiceBalanceRepository
from juice.app.repositories.juice_cash_out_repository import JuiceCashOutRepository
from juice.domain.juice_balance import LedgerKind
from juice.domain.juice_cash_out import CashOutStatus
from .dtos import CancelCashOutCommandDTO, CashOutResponseDTO
from .mappers import to_cash_out_dto

logger = logging.getLogger(__name__)


class CancelCashOut:
    """
    Use Case: Cancel a pending cash out and refund the Juice

    Business Rules:
    1. The cash out row is locked for the whole transaction, so a settlement
       worker cannot claim it concurrently
    2. Only the owner can cancel; other users get "not found"
    3. Only pending cash outs can be cancelled
    4. Refund and status change commit together
    """

    def __init__(
        self,
        uow: UnitOfWork,
        balance_repo: JuiceBalanceRepository,
        cash_out_repo: JuiceCashOutRepository,
    ):
        self.uow = uow
        self.balance_repo = balance_repo
        self.cash_out_repo = cash_out_repo

    async def execute(
        self, command: CancelCashOutCommandDTO, now: Optional[datetime] = None
    ) -> Result[CashOutResponseDTO]:
        """
        Errors:
            CASH_OUT_NOT_FOUND: Missing or owned by another user
            INVALID_STATE: Cash out is no longer pending
        """
        now = now or datetime.utcnow()

        try:
            cash_out = await self.cash_out_repo.get_by_id(command.cash_out_id, for_update=True)

            if not cash_out or cash_out.user_id != command.user_id:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="CASH_OUT_NOT_FOUND",
                        message=f"Cash out {command.cash_out_id} not found",
                    )
                )

            if cash_out.status != CashOutStatus.PENDING:
                error = Error(
                    code="INVALID_STATE",
                    message=f"Cannot cancel cash out in {cash_out.status.value} state",
                )
                await self.uow.rollback()
                return Return.err(error)

            await self.balance_repo.refund(
                cash_out.user_id, cash_out.juice_amount, LedgerKind.CASH_OUT, now
            )
            cancelled = await self.cash_out_repo.mark_cancelled(cash_out, now)
            await self.uow.commit()

            logger.info(
                f"Cancelled cash out {cancelled.id}, refunded {cancelled.juice_amount} Juice "
                f"to user {cancelled.user_id}"
            )
            return Return.ok(to_cash_out_dto(cancelled))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CANCEL_CASH_OUT_FAILED",
                    message=f"Failed to cancel cash out {command.cash_out_id}",
                    reason=str(e),
                )
            )
