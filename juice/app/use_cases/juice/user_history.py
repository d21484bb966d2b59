"""User history queries

Per-user listings of purchases, spends and cash outs, newest first.
"""

from typing import List
from juice.libs.result import Result, Return, Error
from juice.app.repositories.juice_purchase_repository import JuicePurchaseRepository
from juice.app.repositories.juice_spend_repository import JuiceSpendRepository
from juice.app.repositories.juice_cash_out_repository import JuiceCashOutRepository
from .dtos import CashOutResponseDTO, PurchaseResponseDTO, SpendResponseDTO
from .mappers import to_cash_out_dto, to_purchase_dto, to_spend_dto


class ListUserPurchases:
    def __init__(self, purchase_repo: JuicePurchaseRepository):
        self.purchase_repo = purchase_repo

    async def execute(self, user_id: str) -> Result[List[PurchaseResponseDTO]]:
        try:
            purchases = await self.purchase_repo.get_by_user_id(user_id)
            return Return.ok([to_purchase_dto(p) for p in purchases])
        except Exception as e:
            return Return.err(
                Error(code="LIST_PURCHASES_FAILED", message="Failed to list purchases", reason=str(e))
            )


class ListUserSpends:
    def __init__(self, spend_repo: JuiceSpendRepository):
        self.spend_repo = spend_repo

    async def execute(self, user_id: str) -> Result[List[SpendResponseDTO]]:
        try:
            spends = await self.spend_repo.get_by_user_id(user_id)
            return Return.ok([to_spend_dto(s) for s in spends])
        except Exception as e:
            return Return.err(
                Error(code="LIST_SPENDS_FAILED", message="Failed to list spends", reason=str(e))
            )


class ListUserCashOuts:
    def __init__(self, cash_out_repo: JuiceCashOutRepository):
        self.cash_out_repo = cash_out_repo

    async def execute(self, user_id: str) -> Result[List[CashOutResponseDTO]]:
        try:
            cash_outs = await self.cash_out_repo.get_by_user_id(user_id)
            return Return.ok([to_cash_out_dto(c) for c in cash_outs])
        except Exception as e:
            return Return.err(
                Error(code="LIST_CASH_OUTS_FAILED", message="Failed to list cash outs", reason=str(e))
            )
