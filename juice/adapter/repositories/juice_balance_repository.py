"""SQLAlchemy implementation of JuiceBalanceRepository

Balance mutations are single UPDATE statements so concurrent debits cannot
interleave a read and a write. The debit guard (balance >= amount) lives in
the WHERE clause; the CHECK constraint is the last line of defence.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from juice.app.repositories.juice_balance_repository import JuiceBalanceRepository
from juice.domain.juice_balance import BALANCE_EXPIRES_AFTER, JuiceBalance, LedgerKind


_LIFETIME_COLUMNS = {
    LedgerKind.SPEND: JuiceBalance.lifetime_spent,
    LedgerKind.CASH_OUT: JuiceBalance.lifetime_cashed_out,
}

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class SqlAlchemyJuiceBalanceRepository(JuiceBalanceRepository):
    """
    SQLAlchemy implementation of JuiceBalanceRepository

    Features:
    - Conditional debit in one UPDATE (no read-modify-write)
    - Idempotent lazy creation via INSERT ... ON CONFLICT DO NOTHING
    - Lock-and-skip selection for the expiration sweep
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id(self, user_id: str, for_update: bool = False) -> Optional[JuiceBalance]:
        stmt = (
            select(JuiceBalance)
            .where(JuiceBalance.user_id == user_id)
            .execution_options(populate_existing=True)
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: str) -> JuiceBalance:
        existing = await self.get_by_user_id(user_id)
        if existing:
            return existing

        now = datetime.utcnow()
        values = dict(
            user_id=user_id,
            balance=Decimal("0"),
            lifetime_purchased=Decimal("0"),
            lifetime_spent=Decimal("0"),
            lifetime_cashed_out=Decimal("0"),
            last_activity_at=now,
            expires_at=now + BALANCE_EXPIRES_AFTER,
            created_at=now,
            updated_at=now,
        )

        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)

        if insert is not None:
            stmt = insert(JuiceBalance).values(**values).on_conflict_do_nothing(
                index_elements=["user_id"]
            )
            await self.session.execute(stmt)
        else:
            try:
                async with self.session.begin_nested():
                    self.session.add(JuiceBalance(**values))
            except IntegrityError:
                pass

        return await self.get_by_user_id(user_id)

    async def credit(self, user_id: str, amount: Decimal, now: datetime) -> None:
        stmt = (
            update(JuiceBalance)
            .where(JuiceBalance.user_id == user_id)
            .values({
                JuiceBalance.balance: JuiceBalance.balance + amount,
                JuiceBalance.lifetime_purchased: JuiceBalance.lifetime_purchased + amount,
                JuiceBalance.last_activity_at: now,
                JuiceBalance.updated_at: now,
            })
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def debit(self, user_id: str, amount: Decimal, kind: LedgerKind, now: datetime) -> bool:
        counter = _LIFETIME_COLUMNS[kind]
        stmt = (
            update(JuiceBalance)
            .where(JuiceBalance.user_id == user_id)
            .where(JuiceBalance.balance >= amount)
            .values({
                JuiceBalance.balance: JuiceBalance.balance - amount,
                counter: counter + amount,
                JuiceBalance.last_activity_at: now,
                JuiceBalance.updated_at: now,
            })
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def refund(self, user_id: str, amount: Decimal, kind: LedgerKind, now: datetime) -> None:
        counter = _LIFETIME_COLUMNS[kind]
        stmt = (
            update(JuiceBalance)
            .where(JuiceBalance.user_id == user_id)
            .values({
                JuiceBalance.balance: JuiceBalance.balance + amount,
                counter: counter - amount,
                JuiceBalance.last_activity_at: now,
                JuiceBalance.updated_at: now,
            })
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def get_inactive_with_balance(
        self, inactive_before: datetime, limit: int
    ) -> List[JuiceBalance]:
        stmt = (
            select(JuiceBalance)
            .where(JuiceBalance.last_activity_at < inactive_before)
            .where(JuiceBalance.balance > 0)
            .order_by(JuiceBalance.last_activity_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def zero_balance(self, user_id: str, now: datetime) -> None:
        stmt = (
            update(JuiceBalance)
            .where(JuiceBalance.user_id == user_id)
            .values({JuiceBalance.balance: Decimal("0"), JuiceBalance.updated_at: now})
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def get_all(self) -> List[JuiceBalance]:
        stmt = (
            select(JuiceBalance)
            .order_by(JuiceBalance.user_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
