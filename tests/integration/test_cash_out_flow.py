"""Integration tests for the cash-out queue"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from juice.adapter.repositories import (
    SqlAlchemyJuiceBalanceRepository,
    SqlAlchemyJuiceCashOutRepository,
)
from juice.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from juice.app.services.chain_client import ChainClientRegistry
from juice.app.use_cases.juice import CancelCashOut, InitiateCashOut, SettleCashOuts
from juice.app.use_cases.juice.dtos import CancelCashOutCommandDTO, CashOutCommandDTO
from juice.domain.juice_cash_out import CashOutStatus
from tests.fakes import FakeChainClient, FakePriceFeed


DESTINATION = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"
NOW = datetime(2024, 3, 1, 12, 0, 0)


def initiate(session):
    return InitiateCashOut(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyJuiceCashOutRepository(session),
    )


def cancel(session):
    return CancelCashOut(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyJuiceCashOutRepository(session),
    )


def settle(session, chain_client):
    return SettleCashOuts(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyJuiceCashOutRepository(session),
        FakePriceFeed(),
        ChainClientRegistry({42161: chain_client}),
    )


async def request_cash_out(session, amount: str = "10.00"):
    result = await initiate(session).execute(
        CashOutCommandDTO(user_id="user_1", destination_address=DESTINATION, amount=Decimal(amount)),
        now=NOW,
    )
    assert result.is_ok()
    return result.value


@pytest.mark.asyncio
class TestCashOutIntegration:

    async def test_cancel_refunds_pending_cash_out(self, db_session, fund_user):
        """
        Given: 50 Juice balance with a pending 10 Juice cash out
        When: User cancels it
        Then: Cash out cancelled and the balance is back to 50
        """
        # Arrange
        await fund_user("user_1", "50.00", now=NOW)
        cash_out = await request_cash_out(db_session)

        # Act
        result = await cancel(db_session).execute(
            CancelCashOutCommandDTO(cash_out_id=cash_out.cash_out_id, user_id="user_1"), now=NOW
        )

        # Assert
        assert result.is_ok()
        assert result.value.status == "cancelled"
        balance = await SqlAlchemyJuiceBalanceRepository(db_session).get_by_user_id("user_1")
        assert balance.balance == Decimal("50.00")
        assert balance.lifetime_cashed_out == Decimal("0")

    async def test_cancel_by_other_user_not_found(self, db_session, fund_user):
        # Arrange
        await fund_user("user_1", "50.00", now=NOW)
        cash_out = await request_cash_out(db_session)

        # Act
        result = await cancel(db_session).execute(
            CancelCashOutCommandDTO(cash_out_id=cash_out.cash_out_id, user_id="user_2"), now=NOW
        )

        # Assert
        assert result.error.code == "CASH_OUT_NOT_FOUND"

    async def test_holding_delay_respected(self, db_session, fund_user):
        """
        Given: Cash out requested with the 24 hour delay
        When: Settlement runs one hour later, then 25 hours later
        Then: Not claimed the first time, completed the second
        """
        # Arrange
        await fund_user("user_1", "50.00", now=NOW)
        cash_out = await request_cash_out(db_session)
        assert cash_out.available_at == NOW + timedelta(hours=24)
        chain_client = FakeChainClient(42161)
        use_case = settle(db_session, chain_client)

        # Act
        early = await use_case.execute(now=NOW + timedelta(hours=1))

        # Assert
        assert early.value.succeeded == 0
        assert early.value.still_pending == 1
        assert chain_client.attempts == 0

        # Act
        due = await use_case.execute(now=NOW + timedelta(hours=25))

        # Assert
        assert due.value.succeeded == 1
        settled = await SqlAlchemyJuiceCashOutRepository(db_session).get_by_id(cash_out.cash_out_id)
        assert settled.status == CashOutStatus.COMPLETED
        assert settled.crypto_amount == "5000000000000000"
        assert chain_client.submitted[0].to == DESTINATION

    async def test_cancel_after_claim_rejected(self, db_session, fund_user):
        # Arrange
        await fund_user("user_1", "50.00", now=NOW)
        cash_out = await request_cash_out(db_session)
        await settle(db_session, FakeChainClient(42161)).execute(now=NOW + timedelta(hours=25))

        # Act
        result = await cancel(db_session).execute(
            CancelCashOutCommandDTO(cash_out_id=cash_out.cash_out_id, user_id="user_1"), now=NOW
        )

        # Assert
        assert result.error.code == "INVALID_STATE"
        assert result.error.message == "Cannot cancel cash out in completed state"
        balance = await SqlAlchemyJuiceBalanceRepository(db_session).get_by_user_id("user_1")
        assert balance.balance == Decimal("40.00")

    async def test_exhausted_cash_out_refunded_once(self, db_session, fund_user):
        # Arrange
        await fund_user("user_1", "50.00", now=NOW)
        cash_out = await request_cash_out(db_session)
        use_case = settle(db_session, FakeChainClient(42161, always_fail=True))

        # Act
        for _ in range(6):
            await use_case.execute(now=NOW + timedelta(hours=25))

        # Assert
        failed = await SqlAlchemyJuiceCashOutRepository(db_session).get_by_id(cash_out.cash_out_id)
        assert failed.status == CashOutStatus.FAILED
        assert failed.retry_count == 5
        balance = await SqlAlchemyJuiceBalanceRepository(db_session).get_by_user_id("user_1")
        assert balance.balance == Decimal("50.00")
        assert balance.lifetime_cashed_out == Decimal("0")

    async def test_insufficient_balance(self, db_session, fund_user):
        # Arrange
        await fund_user("user_1", "5.00", now=NOW)

        # Act
        result = await initiate(db_session).execute(
            CashOutCommandDTO(user_id="user_1", destination_address=DESTINATION, amount=Decimal("10.00")),
            now=NOW,
        )

        # Assert
        assert result.error.code == "INSUFFICIENT_BALANCE"
        assert await SqlAlchemyJuiceCashOutRepository(db_session).get_by_user_id("user_1") == []
