"""Integration tests for the expiration sweep and balance reconciliation"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from juice.adapter.repositories import (
    SqlAlchemyCreditExpirationRepository,
    SqlAlchemyJuiceBalanceRepository,
)
from juice.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from juice.app.use_cases.juice import ExpireInactiveCredits, ReconcileBalances


NOW = datetime(2024, 9, 1, 0, 0, 0)


def expire(session):
    return ExpireInactiveCredits(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyCreditExpirationRepository(session),
    )


def reconcile(session):
    return ReconcileBalances(
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyCreditExpirationRepository(session),
    )


@pytest.mark.asyncio
class TestExpirationIntegration:

    async def test_inactive_balance_expired(self, db_session, fund_user):
        """
        Given: One user inactive for 200 days, one active yesterday
        When: The sweep runs with 180 days retention
        Then: Only the inactive balance is zeroed and an expiration row recorded
        """
        # Arrange
        stale_activity = NOW - timedelta(days=200)
        await fund_user("user_stale", "25.00", now=stale_activity)
        await fund_user("user_active", "40.00", now=NOW - timedelta(days=1))

        # Act
        result = await expire(db_session).execute(retention_days=180, now=NOW)

        # Assert
        assert result.value.expired == 1
        assert result.value.total_amount == Decimal("25.00")
        assert result.value.failed == 0

        repo = SqlAlchemyJuiceBalanceRepository(db_session)
        stale = await repo.get_by_user_id("user_stale")
        assert stale.balance == Decimal("0")
        assert stale.lifetime_purchased == Decimal("25.00")
        assert stale.last_activity_at == stale_activity

        active = await repo.get_by_user_id("user_active")
        assert active.balance == Decimal("40.00")

        totals = await SqlAlchemyCreditExpirationRepository(db_session).get_totals_by_user()
        assert totals == {"user_stale": Decimal("25.00")}

    async def test_second_sweep_expires_nothing(self, db_session, fund_user):
        # Arrange
        await fund_user("user_stale", "25.00", now=NOW - timedelta(days=200))
        await expire(db_session).execute(retention_days=180, now=NOW)

        # Act
        result = await expire(db_session).execute(retention_days=180, now=NOW)

        # Assert
        assert result.value.expired == 0
        assert result.value.total_amount == Decimal("0")

    async def test_reconciliation_accounts_for_expired_juice(self, db_session, fund_user):
        """
        Given: An expired balance and an active balance
        When: Balances are reconciled
        Then: No discrepancies
        """
        # Arrange
        await fund_user("user_stale", "25.00", now=NOW - timedelta(days=200))
        await fund_user("user_active", "40.00", now=NOW)
        await expire(db_session).execute(retention_days=180, now=NOW)

        # Act
        result = await reconcile(db_session).execute()

        # Assert
        assert result.is_ok()
        assert result.value.total_balances_checked == 2
        assert result.value.discrepancies_found == 0
