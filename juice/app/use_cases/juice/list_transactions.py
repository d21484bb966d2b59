"""List Transactions Use Case

Merged Juice history for a user: purchases, spends and cash outs.
"""

from juice.libs.result import Result, Return, Error
from juice.app.repositories.juice_transaction_repository import (
    HistoryEntry,
    JuiceTransactionRepository,
)
from juice.domain.juice_purchase import JuicePurchase
from juice.domain.juice_spend import JuiceSpend
from .dtos import TransactionItemDTO, TransactionListResponseDTO


def to_transaction_item(entry: HistoryEntry) -> TransactionItemDTO:
    if isinstance(entry, JuicePurchase):
        return TransactionItemDTO(
            id=entry.id,
            type="purchase",
            amount=entry.juice_amount,
            status=entry.status.value,
            created_at=entry.created_at,
            details={
                "fiat_amount": str(entry.fiat_amount),
                "currency": entry.currency,
                "clears_at": entry.clears_at.isoformat() if entry.clears_at else None,
            },
        )

    if isinstance(entry, JuiceSpend):
        return TransactionItemDTO(
            id=entry.id,
            type="spend",
            amount=-entry.juice_amount,
            status=entry.status.value,
            created_at=entry.created_at,
            details={
                "project_id": entry.project_id,
                "chain_id": entry.chain_id,
                "tx_hash": entry.tx_hash,
            },
        )

    return TransactionItemDTO(
        id=entry.id,
        type="cash_out",
        amount=-entry.juice_amount,
        status=entry.status.value,
        created_at=entry.created_at,
        details={
            "chain_id": entry.chain_id,
            "destination_address": entry.destination_address,
            "tx_hash": entry.tx_hash,
        },
    )


class ListTransactions:
    """
    List Transactions Use Case

    Purchases appear with a positive amount, spends and cash outs with a
    negative one. The repository sorts newest first and paginates.
    """

    def __init__(self, transaction_repo: JuiceTransactionRepository):
        self.transaction_repo = transaction_repo

    async def execute(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> Result[TransactionListResponseDTO]:
        """
        Execute list transactions

        Args:
            user_id: User identifier
            limit: Page size (1-100)
            offset: Entries to skip

        Returns:
            Result[TransactionListResponseDTO]: Page of history entries
        """
        if limit < 1 or limit > 100:
            return Return.err(
                Error(code="INVALID_PAGINATION", message="limit must be between 1 and 100")
            )
        if offset < 0:
            return Return.err(
                Error(code="INVALID_PAGINATION", message="offset must be >= 0")
            )

        try:
            entries, total = await self.transaction_repo.get_by_user_id(user_id, limit, offset)

            return Return.ok(
                TransactionListResponseDTO(
                    user_id=user_id,
                    transactions=[to_transaction_item(entry) for entry in entries],
                    total=total,
                    limit=limit,
                    offset=offset,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_TRANSACTIONS_FAILED",
                    message=f"Failed to list transactions for user {user_id}",
                    reason=str(e),
                )
            )
