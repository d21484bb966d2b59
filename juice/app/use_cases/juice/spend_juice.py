"""SpendJuice Use Case

Queues a payment of Juice to a project. The balance is debited up front;
the on-chain payment is made later by the spend settlement worker.
"""

import logging
from datetime import datetime
from typing import Optional
from juice.libs.result import Result, Return, Error
from juice.app.services.unit_of_work import UnitOfWork
from juice.app.repositories.juice_balance_repository import JuiceBalanceRepository
from juice.app.repositories.juice_spend_repository import JuiceSpendRepository
from juice.domain.juice_balance import LedgerKind
from juice.domain.juice_spend import JuiceSpend, SpendStatus
from .dtos import SpendCommandDTO, SpendResponseDTO
from .mappers import to_spend_dto

logger = logging.getLogger(__name__)

DEFAULT_CHAIN_ID = 42161


class SpendJuice:
    """
    Use Case: Debit Juice and record a pending spend

    Business Rules:
    1. Conditional debit: UPDATE ... WHERE balance >= amount (no overdraft,
       no lost update under concurrency)
    2. Debit and spend record commit together; insufficient balance leaves
       no spend behind
    3. Missing chain_id falls back to the default chain
    """

    def __init__(
        self,
        uow: UnitOfWork,
        balance_repo: JuiceBalanceRepository,
        spend_repo: JuiceSpendRepository,
        default_chain_id: int = DEFAULT_CHAIN_ID,
    ):
        self.uow = uow
        self.balance_repo = balance_repo
        self.spend_repo = spend_repo
        self.default_chain_id = default_chain_id

    async def execute(
        self, command: SpendCommandDTO, now: Optional[datetime] = None
    ) -> Result[SpendResponseDTO]:
        """
        Execute spend

        Args:
            command: SpendCommandDTO with user, project, beneficiary and amount

        Returns:
            Result[SpendResponseDTO]: The pending spend or error

        Errors:
            INSUFFICIENT_BALANCE: balance < amount
        """
        now = now or datetime.utcnow()

        try:
            debited = await self.balance_repo.debit(
                command.user_id, command.amount, LedgerKind.SPEND, now
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

            spend = JuiceSpend(
                user_id=command.user_id,
                project_id=command.project_id,
                chain_id=command.chain_id or self.default_chain_id,
                beneficiary_address=command.beneficiary_address,
                memo=command.memo,
                juice_amount=command.amount,
                status=SpendStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            created = await self.spend_repo.create(spend)
            await self.uow.commit()

            logger.info(
                f"Queued spend {created.id}: {created.juice_amount} Juice from user "
                f"{created.user_id} to project {created.project_id} on chain {created.chain_id}"
            )
            return Return.ok(to_spend_dto(created))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="SPEND_JUICE_FAILED",
                    message="Failed to spend Juice",
                    reason=str(e),
                )
            )
