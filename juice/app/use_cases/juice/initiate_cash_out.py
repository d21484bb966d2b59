"""InitiateCashOut Use Case

Queues a conversion of Juice to crypto. The Juice is debited immediately
and the transfer becomes eligible after a holding delay.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from juice.libs.result import Result, Return, Error
from juice.app.services.unit_of_work import UnitOfWork
from juice.app.repositories.juice_balance_repository import JuiceBalanceRepository
from juice.app.repositories.juice_cash_out_repository import JuiceCashOutRepository
from juice.domain.juice_balance import LedgerKind
from juice.domain.juice_cash_out import JuiceCashOut, CashOutStatus
from .dtos import CashOutCommandDTO, CashOutResponseDTO
from .mappers import to_cash_out_dto
from .spend_juice import DEFAULT_CHAIN_ID

logger = logging.getLogger(__name__)

CASH_OUT_DELAY_HOURS = 24


class InitiateCashOut:
    """
    Use Case: Debit Juice and record a pending cash out

    Same debit rules as SpendJuice; available_at = now + delay, during
    which the user may cancel.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        balance_repo: JuiceBalanceRepository,
        cash_out_repo: JuiceCashOutRepository,
        default_chain_id: int = DEFAULT_CHAIN_ID,
        delay_hours: int = CASH_OUT_DELAY_HOURS,
    ):
        self.uow = uow
        self.balance_repo = balance_repo
        self.cash_out_repo = cash_out_repo
        self.default_chain_id = default_chain_id
        self.delay_hours = delay_hours

    async def execute(
        self, command: CashOutCommandDTO, now: Optional[datetime] = None
    ) -> Result[CashOutResponseDTO]:
        now = now or datetime.utcnow()

        try:
            debited = await self.balance_repo.debit(
                command.user_id, command.amount, LedgerKind.CASH_OUT, now
            )

            if not debited:
                balance = await self.balance_repo.get_by_user_id(command.user_id)
                available = balance.balance if balance else 0
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="INSUFFICIENT_BALANCE",
                        message=f"Insufficient balance. Required: {command.amount}, Available: {available}",
                    )
                )

            cash_out = JuiceCashOut(
                user_id=command.user_id,
                destination_address=command.destination_address,
                chain_id=command.chain_id or self.default_chain_id,
                juice_amount=command.amount,
                status=CashOutStatus.PENDING,
                available_at=now + timedelta(hours=self.delay_hours),
                created_at=now,
                updated_at=now,
            )
            created = await self.cash_out_repo.create(cash_out)
            await self.uow.commit()

            logger.info(
                f"Queued cash out {created.id}: {created.juice_amount} Juice for user "
                f"{created.user_id}, available at {created.available_at.isoformat()}"
            )
            return Return.ok(to_cash_out_dto(created))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CASH_OUT_FAILED",
                    message="Failed to initiate cash out",
                    reason=str(e),
                )
            )
