"""SQLAlchemy implementation of JuiceCashOutRepository"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from juice.app.repositories.juice_cash_out_repository import JuiceCashOutRepository
from juice.domain.juice_cash_out import JuiceCashOut, CashOutStatus


class SqlAlchemyJuiceCashOutRepository(JuiceCashOutRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, cash_out: JuiceCashOut) -> JuiceCashOut:
        self.session.add(cash_out)
        await self.session.flush()
        await self.session.refresh(cash_out)
        return cash_out

    async def get_by_id(self, cash_out_id: str, for_update: bool = False) -> Optional[JuiceCashOut]:
        stmt = (
            select(JuiceCashOut)
            .where(JuiceCashOut.id == cash_out_id)
            .execution_options(populate_existing=True)
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def claim_available(self, limit: int, max_retries: int, now: datetime) -> List[JuiceCashOut]:
        stmt = (
            select(JuiceCashOut)
            .where(JuiceCashOut.status == CashOutStatus.PENDING)
            .where(JuiceCashOut.available_at <= now)
            .where(JuiceCashOut.retry_count < max_retries)
            .order_by(JuiceCashOut.available_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        cash_outs = list(result.scalars().all())

        for cash_out in cash_outs:
            cash_out.status = CashOutStatus.PROCESSING
            cash_out.updated_at = now
            self.session.add(cash_out)

        await self.session.flush()
        return cash_outs

    async def mark_completed(
        self,
        cash_out_id: str,
        tx_hash: str,
        crypto_amount: str,
        rate: Decimal,
        now: datetime,
    ) -> None:
        stmt = (
            update(JuiceCashOut)
            .where(JuiceCashOut.id == cash_out_id)
            .values(
                status=CashOutStatus.COMPLETED,
                tx_hash=tx_hash,
                crypto_amount=crypto_amount,
                rate=rate,
                error_message=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def record_failure(
        self, cash_out: JuiceCashOut, status: CashOutStatus, error_message: str, now: datetime
    ) -> JuiceCashOut:
        cash_out.status = status
        cash_out.retry_count = cash_out.retry_count + 1
        cash_out.last_retry_at = now
        cash_out.error_message = error_message
        cash_out.updated_at = now
        self.session.add(cash_out)
        await self.session.flush()
        return cash_out

    async def mark_cancelled(self, cash_out: JuiceCashOut, now: datetime) -> JuiceCashOut:
        cash_out.status = CashOutStatus.CANCELLED
        cash_out.updated_at = now
        self.session.add(cash_out)
        await self.session.flush()
        return cash_out

    async def count_by_status(self, status: CashOutStatus) -> int:
        stmt = select(func.count()).select_from(JuiceCashOut).where(JuiceCashOut.status == status)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def get_by_user_id(self, user_id: str) -> List[JuiceCashOut]:
        stmt = (
            select(JuiceCashOut)
            .where(JuiceCashOut.user_id == user_id)
            .order_by(JuiceCashOut.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
