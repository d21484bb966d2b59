"""CreditJuice Use Case

Credits a cleared purchase to the user's balance.
"""

import logging
from datetime import datetime
from typing import Optional
from juice.libs.result import Result, Return, Error
from juice.app.services.unit_of_work import UnitOfWork
from juice.app.repositories.juice_balance_repository import JuiceBalanceRepository
from juice.app.repositories.juice_purchase_repository import JuicePurchaseRepository
from juice.domain.juice_purchase import PurchaseStatus
from .dtos import CreditJuiceCommandDTO, CreditJuiceResponseDTO

logger = logging.getLogger(__name__)


class CreditJuice:
    """
    Use Case: Credit a purchase to the balance

    Business Rules:
    1. The purchase row is locked (SELECT FOR UPDATE) for the whole transaction
    2. Only clearing purchases owned by the user can be credited
    3. Balance increment and purchase status change commit together,
       so a purchase is credited at most once

    Flow:
    1. Lock purchase, validate owner and status
    2. Ensure balance row exists
    3. Increment balance and lifetime_purchased, stamp last_activity_at
    4. Mark purchase credited
    5. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        balance_repo: JuiceBalanceRepository,
        purchase_repo: JuicePurchaseRepository,
    ):
        self.uow = uow
        self.balance_repo = balance_repo
        self.purchase_repo = purchase_repo

    async def execute(
        self, command: CreditJuiceCommandDTO, now: Optional[datetime] = None
    ) -> Result[CreditJuiceResponseDTO]:
        """
        Execute credit

        Args:
            command: CreditJuiceCommandDTO with user_id, purchase_id, amount
            now: Credit timestamp (defaults to utcnow)

        Returns:
            Result[CreditJuiceResponseDTO]: Success with the new balance or error

        Errors:
            PURCHASE_NOT_FOUND: No such purchase for this user
            INVALID_PURCHASE_STATE: Purchase is not clearing
        """
        now = now or datetime.utcnow()

        try:
            purchase = await self.purchase_repo.get_by_id(command.purchase_id, for_update=True)

            if not purchase or purchase.user_id != command.user_id:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="PURCHASE_NOT_FOUND",
                        message=f"Purchase {command.purchase_id} not found for user {command.user_id}",
                    )
                )

            if purchase.status != PurchaseStatus.CLEARING:
                error = Error(
                    code="INVALID_PURCHASE_STATE",
                    message=f"Purchase {purchase.id} is {purchase.status.value}, expected clearing",
                )
                # Rollback expires the loaded purchase
                await self.uow.rollback()
                return Return.err(error)

            await self.balance_repo.get_or_create(command.user_id)
            await self.balance_repo.credit(command.user_id, command.amount, now)
            await self.purchase_repo.mark_credited(purchase.id, now)

            balance = await self.balance_repo.get_by_user_id(command.user_id)
            await self.uow.commit()

            logger.info(
                f"Credited {command.amount} Juice to user {command.user_id} "
                f"from purchase {purchase.id}"
            )

            return Return.ok(
                CreditJuiceResponseDTO(
                    purchase_id=purchase.id,
                    user_id=command.user_id,
                    amount=command.amount,
                    balance_after=balance.balance,
                    credited_at=now,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREDIT_JUICE_FAILED",
                    message=f"Failed to credit purchase {command.purchase_id}",
                    reason=str(e),
                )
            )
