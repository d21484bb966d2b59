"""SQLAlchemy implementation of JuiceSpendRepository

Provides claim-based selection (FOR UPDATE SKIP LOCKED) so several
settlement workers can drain the spend queue without sharing a row.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from juice.app.repositories.juice_spend_repository import JuiceSpendRepository
from juice.domain.juice_spend import JuiceSpend, SpendStatus


def _to_decimal(value) -> Decimal:
    # SUM comes back as float on some backends
    return Decimal(str(value)) if value is not None else Decimal("0")


class SqlAlchemyJuiceSpendRepository(JuiceSpendRepository):
    """
    SQLAlchemy implementation of JuiceSpendRepository

    Features:
    - Lock-and-skip claiming for batch settlement
    - Blocking row lock for the manual trigger
    - Aggregates for the admin dashboard
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, spend: JuiceSpend) -> JuiceSpend:
        self.session.add(spend)
        await self.session.flush()
        await self.session.refresh(spend)
        return spend

    async def get_by_id(self, spend_id: str, for_update: bool = False) -> Optional[JuiceSpend]:
        stmt = (
            select(JuiceSpend)
            .where(JuiceSpend.id == spend_id)
            .execution_options(populate_existing=True)
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def claim_pending(self, limit: int, max_retries: int, now: datetime) -> List[JuiceSpend]:
        stmt = (
            select(JuiceSpend)
            .where(JuiceSpend.status == SpendStatus.PENDING)
            .where(JuiceSpend.retry_count < max_retries)
            .order_by(JuiceSpend.created_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        spends = list(result.scalars().all())

        for spend in spends:
            spend.status = SpendStatus.EXECUTING
            spend.updated_at = now
            self.session.add(spend)

        await self.session.flush()
        return spends

    async def mark_executing(self, spend: JuiceSpend, now: datetime) -> JuiceSpend:
        spend.status = SpendStatus.EXECUTING
        spend.updated_at = now
        self.session.add(spend)
        await self.session.flush()
        return spend

    async def mark_completed(
        self,
        spend_id: str,
        tx_hash: str,
        crypto_amount: str,
        rate: Decimal,
        tokens_received: Optional[str],
        now: datetime,
    ) -> None:
        stmt = (
            update(JuiceSpend)
            .where(JuiceSpend.id == spend_id)
            .values(
                status=SpendStatus.COMPLETED,
                tx_hash=tx_hash,
                crypto_amount=crypto_amount,
                rate=rate,
                tokens_received=tokens_received,
                error_message=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def record_failure(
        self, spend: JuiceSpend, status: SpendStatus, error_message: str, now: datetime
    ) -> JuiceSpend:
        spend.status = status
        spend.retry_count = spend.retry_count + 1
        spend.last_retry_at = now
        spend.error_message = error_message
        spend.updated_at = now
        self.session.add(spend)
        await self.session.flush()
        return spend

    async def count_by_status(self, status: SpendStatus) -> int:
        stmt = select(func.count()).select_from(JuiceSpend).where(JuiceSpend.status == status)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def list_by_status(
        self, status: SpendStatus, limit: int, offset: int
    ) -> Tuple[List[JuiceSpend], int]:
        total = await self.count_by_status(status)

        stmt = (
            select(JuiceSpend)
            .where(JuiceSpend.status == status)
            .order_by(JuiceSpend.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_by_user_id(self, user_id: str) -> List[JuiceSpend]:
        stmt = (
            select(JuiceSpend)
            .where(JuiceSpend.user_id == user_id)
            .order_by(JuiceSpend.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _count_and_sum(self, *conditions) -> Tuple[int, Decimal]:
        stmt = select(
            func.count(JuiceSpend.id),
            func.coalesce(func.sum(JuiceSpend.juice_amount), 0),
        ).where(*conditions)
        result = await self.session.execute(stmt)
        count, total = result.one()
        return count, _to_decimal(total)

    async def get_stats(self, today_start: datetime, week_start: datetime) -> Dict[str, object]:
        pending_count, pending_total = await self._count_and_sum(
            JuiceSpend.status == SpendStatus.PENDING
        )
        executing_count = await self.count_by_status(SpendStatus.EXECUTING)
        today_count, today_total = await self._count_and_sum(
            JuiceSpend.status == SpendStatus.COMPLETED,
            JuiceSpend.updated_at >= today_start,
        )
        week_count, week_total = await self._count_and_sum(
            JuiceSpend.status == SpendStatus.COMPLETED,
            JuiceSpend.updated_at >= week_start,
        )
        failed_count = await self.count_by_status(SpendStatus.FAILED)

        return {
            "pending_count": pending_count,
            "pending_total": pending_total,
            "executing_count": executing_count,
            "today_completed_count": today_count,
            "today_completed_total": today_total,
            "week_completed_count": week_count,
            "week_completed_total": week_total,
            "failed_count": failed_count,
        }
