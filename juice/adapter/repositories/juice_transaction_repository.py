"""SQLAlchemy implementation of JuiceTransactionRepository

The history is a UNION ALL of (kind, id, created_at) over the three record
tables. Only the requested page is sorted out of the database; its rows are
then loaded as entities, one query per kind.
"""

from typing import Dict, List, Tuple
from sqlalchemy import func, literal_column, select, union_all
from sqlmodel.ext.asyncio.session import AsyncSession
from juice.app.repositories.juice_transaction_repository import (
    HistoryEntry,
    JuiceTransactionRepository,
)
from juice.domain.juice_cash_out import JuiceCashOut
from juice.domain.juice_purchase import JuicePurchase
from juice.domain.juice_spend import JuiceSpend

_MODELS = {
    "purchase": JuicePurchase,
    "spend": JuiceSpend,
    "cash_out": JuiceCashOut,
}


class SqlAlchemyJuiceTransactionRepository(JuiceTransactionRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    def _history(self, user_id: str):
        return union_all(
            *[
                select(
                    literal_column(f"'{kind}'").label("kind"),
                    model.id.label("id"),
                    model.created_at.label("created_at"),
                ).where(model.user_id == user_id)
                for kind, model in _MODELS.items()
            ]
        ).subquery("history")

    async def get_by_user_id(
        self, user_id: str, limit: int, offset: int
    ) -> Tuple[List[HistoryEntry], int]:
        history = self._history(user_id)

        count_result = await self.session.execute(select(func.count()).select_from(history))
        total = count_result.scalar_one()

        page_result = await self.session.execute(
            select(history.c.kind, history.c.id)
            .order_by(history.c.created_at.desc(), history.c.id)
            .offset(offset)
            .limit(limit)
        )
        keys = [(row.kind, row.id) for row in page_result.all()]

        loaded: Dict[Tuple[str, str], HistoryEntry] = {}
        for kind, model in _MODELS.items():
            ids = [record_id for entry_kind, record_id in keys if entry_kind == kind]
            if not ids:
                continue
            result = await self.session.execute(select(model).where(model.id.in_(ids)))
            for entry in result.scalars().all():
                loaded[(kind, entry.id)] = entry

        return [loaded[key] for key in keys if key in loaded], total
