"""SQLAlchemy implementation of JuicePurchaseRepository"""

from datetime import datetime
from typing import List, Optional, Sequence
from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from juice.app.repositories.juice_purchase_repository import JuicePurchaseRepository
from juice.domain.juice_purchase import JuicePurchase, PurchaseStatus


class SqlAlchemyJuicePurchaseRepository(JuicePurchaseRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, purchase: JuicePurchase) -> JuicePurchase:
        self.session.add(purchase)
        await self.session.flush()
        await self.session.refresh(purchase)
        return purchase

    async def get_by_id(self, purchase_id: str, for_update: bool = False) -> Optional[JuicePurchase]:
        stmt = (
            select(JuicePurchase)
            .where(JuicePurchase.id == purchase_id)
            .execution_options(populate_existing=True)
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_payment_reference(self, payment_reference: str) -> Optional[JuicePurchase]:
        stmt = (
            select(JuicePurchase)
            .where(JuicePurchase.payment_reference == payment_reference)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_due_for_credit(self, now: datetime, limit: int) -> List[JuicePurchase]:
        stmt = (
            select(JuicePurchase)
            .where(JuicePurchase.status == PurchaseStatus.CLEARING)
            .where(JuicePurchase.clears_at <= now)
            .order_by(JuicePurchase.clears_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_credited(self, purchase_id: str, now: datetime) -> None:
        stmt = (
            update(JuicePurchase)
            .where(JuicePurchase.id == purchase_id)
            .values(status=PurchaseStatus.CREDITED, credited_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def transition_by_payment_reference(
        self,
        payment_reference: str,
        new_status: PurchaseStatus,
        from_statuses: Sequence[PurchaseStatus],
    ) -> bool:
        stmt = (
            update(JuicePurchase)
            .where(JuicePurchase.payment_reference == payment_reference)
            .where(JuicePurchase.status.in_(list(from_statuses)))
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def count_by_status(self, status: PurchaseStatus) -> int:
        stmt = select(func.count()).select_from(JuicePurchase).where(JuicePurchase.status == status)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def get_by_user_id(self, user_id: str) -> List[JuicePurchase]:
        stmt = (
            select(JuicePurchase)
            .where(JuicePurchase.user_id == user_id)
            .order_by(JuicePurchase.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
