"""SQLAlchemy implementation of CreditExpirationRepository"""

from decimal import Decimal
from typing import Dict
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from juice.app.repositories.credit_expiration_repository import CreditExpirationRepository
from juice.domain.credit_expiration import CreditExpiration


class SqlAlchemyCreditExpirationRepository(CreditExpirationRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, expiration: CreditExpiration) -> CreditExpiration:
        self.session.add(expiration)
        await self.session.flush()
        await self.session.refresh(expiration)
        return expiration

    async def get_totals_by_user(self) -> Dict[str, Decimal]:
        stmt = select(
            CreditExpiration.user_id,
            func.sum(CreditExpiration.amount),
        ).group_by(CreditExpiration.user_id)
        result = await self.session.execute(stmt)
        return {user_id: Decimal(str(total)) for user_id, total in result.all()}
