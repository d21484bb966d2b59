"""Get Balance Use Case

Retrieves a user's Juice balance and lifetime counters.
"""

from juice.libs.result import Result, Return, Error
from juice.app.services.unit_of_work import UnitOfWork
from juice.app.repositories.juice_balance_repository import JuiceBalanceRepository
from .dtos import BalanceResponseDTO


class GetBalance:
    """
    Get Balance Use Case

    Users without a balance row get one created lazily (zero balance),
    so this never reports "not found".
    """

    def __init__(self, uow: UnitOfWork, balance_repo: JuiceBalanceRepository):
        self.uow = uow
        self.balance_repo = balance_repo

    async def execute(self, user_id: str) -> Result[BalanceResponseDTO]:
        """
        Execute get balance operation

        Args:
            user_id: The user identifier

        Returns:
            Result[BalanceResponseDTO]: Success with balance data or error
        """
        try:
            balance = await self.balance_repo.get_or_create(user_id)
            await self.uow.commit()

            return Return.ok(
                BalanceResponseDTO(
                    user_id=balance.user_id,
                    balance=balance.balance,
                    lifetime_purchased=balance.lifetime_purchased,
                    lifetime_spent=balance.lifetime_spent,
                    lifetime_cashed_out=balance.lifetime_cashed_out,
                    last_activity_at=balance.last_activity_at,
                    expires_at=balance.expires_at,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="GET_BALANCE_FAILED",
                    message=f"Failed to load balance for user {user_id}",
                    reason=str(e),
                )
            )
