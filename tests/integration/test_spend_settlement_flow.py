"""Integration tests for spend settlement

Tests cover:
- Success: spend completed with tx hash, wei amount and rate
- Retry exhaustion: exactly one refund, spend failed, balance restored
- Manual processing only accepts pending spends
- No double spend: concurrent debits never overdraw, claimed spends are not reclaimed
"""

import asyncio
import pytest
import pytest_asyncio
from datetime import datetime
from decimal import Decimal
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from juice.adapter.repositories import (
    SqlAlchemyJuiceBalanceRepository,
    SqlAlchemyJuiceSpendRepository,
)
from juice.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from juice.app.services.chain_client import ChainClientRegistry
from juice.app.use_cases.juice import ProcessSingleSpend, SettleSpends, SpendJuice
from juice.app.use_cases.juice.dtos import SpendCommandDTO
from juice.domain.juice_spend import SpendStatus
from tests.fakes import FakeChainClient, FakePriceFeed


BENEFICIARY = "0x1234567890abcdef1234567890abcdef12345678"


def settle_spends(session, chain_client, price_feed=None):
    return SettleSpends(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyJuiceSpendRepository(session),
        price_feed or FakePriceFeed(),
        ChainClientRegistry({42161: chain_client}),
    )


def process_single_spend(session, chain_client):
    return ProcessSingleSpend(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyJuiceSpendRepository(session),
        FakePriceFeed(),
        ChainClientRegistry({42161: chain_client}),
    )


async def create_spend(session, user_id: str, amount: str):
    use_case = SpendJuice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyJuiceSpendRepository(session),
    )
    result = await use_case.execute(
        SpendCommandDTO(
            user_id=user_id,
            project_id=42,
            beneficiary_address=BENEFICIARY,
            memo="Supporting the launch",
            amount=Decimal(amount),
        )
    )
    assert result.is_ok()
    return result.value


@pytest.mark.asyncio
class TestSpendSettlementIntegration:

    async def test_spend_settles_on_chain(self, db_session, fund_user):
        """
        Given: 30 Juice spend pending, rate 2000 USD per token
        When: One settlement batch runs
        Then: Spend completed with 0.015 token in wei and the tx hash
        """
        # Arrange
        await fund_user("user_1", "50.00")
        spend = await create_spend(db_session, "user_1", "30.00")
        chain_client = FakeChainClient(42161)

        # Act
        result = await settle_spends(db_session, chain_client).execute()

        # Assert
        assert result.is_ok()
        assert result.value.succeeded == 1
        assert result.value.failed == 0
        assert result.value.still_pending == 0

        settled = await SqlAlchemyJuiceSpendRepository(db_session).get_by_id(spend.spend_id)
        assert settled.status == SpendStatus.COMPLETED
        assert settled.crypto_amount == "15000000000000000"
        assert settled.rate == Decimal("2000")
        assert settled.tx_hash == "0x" + f"{1:064x}"
        assert settled.tokens_received == "1000"

        request = chain_client.submitted[0]
        assert request.to == BENEFICIARY
        assert request.amount_wei == 15000000000000000

        balance = await SqlAlchemyJuiceBalanceRepository(db_session).get_by_user_id("user_1")
        assert balance.balance == Decimal("20.00")
        assert balance.lifetime_spent == Decimal("30.00")

    async def test_transient_failure_returns_spend_to_pending(self, db_session, fund_user):
        # Arrange
        await fund_user("user_1", "50.00")
        spend = await create_spend(db_session, "user_1", "30.00")
        chain_client = FakeChainClient(42161, fail_times=1)
        use_case = settle_spends(db_session, chain_client)

        # Act
        first = await use_case.execute()
        second = await use_case.execute()

        # Assert
        assert first.value.failed == 1
        assert first.value.still_pending == 1
        assert first.value.permanent_failures == []
        assert second.value.succeeded == 1

        settled = await SqlAlchemyJuiceSpendRepository(db_session).get_by_id(spend.spend_id)
        assert settled.status == SpendStatus.COMPLETED
        assert settled.retry_count == 1
        assert len(chain_client.submitted) == 1

    async def test_exhausted_retries_refund_exactly_once(self, db_session, fund_user):
        """
        Given: User with 50 Juice spends 30, every submission fails
        When: Five settlement batches run, then a sixth
        Then: Spend failed after 5 attempts, 30 refunded once, sixth batch claims nothing
        """
        # Arrange
        await fund_user("user_1", "50.00")
        spend = await create_spend(db_session, "user_1", "30.00")
        chain_client = FakeChainClient(42161, always_fail=True)
        use_case = settle_spends(db_session, chain_client)
        spend_repo = SqlAlchemyJuiceSpendRepository(db_session)
        balance_repo = SqlAlchemyJuiceBalanceRepository(db_session)

        # Act
        results = [await use_case.execute() for _ in range(5)]

        # Assert
        for result in results[:4]:
            assert result.value.failed == 1
            assert result.value.permanent_failures == []
            assert result.value.still_pending == 1

        final = results[4].value
        assert len(final.permanent_failures) == 1
        failure = final.permanent_failures[0]
        assert failure.record_id == spend.spend_id
        assert failure.kind == "spend"
        assert failure.retry_count == 5
        assert failure.error_message == "Failed after 5 attempts: RPC timeout"

        failed = await spend_repo.get_by_id(spend.spend_id)
        assert failed.status == SpendStatus.FAILED
        assert failed.retry_count == 5

        balance = await balance_repo.get_by_user_id("user_1")
        assert balance.balance == Decimal("50.00")
        assert balance.lifetime_spent == Decimal("0")
        assert chain_client.attempts == 5

        # Act
        sixth = await use_case.execute()

        # Assert
        assert sixth.value.succeeded == 0
        assert sixth.value.failed == 0
        assert chain_client.attempts == 5
        balance = await balance_repo.get_by_user_id("user_1")
        assert balance.balance == Decimal("50.00")

    async def test_unknown_chain_counts_as_failed_attempt(self, db_session, fund_user):
        # Arrange
        await fund_user("user_1", "50.00")
        spend = await create_spend(db_session, "user_1", "10.00")
        use_case = SettleSpends(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemyJuiceBalanceRepository(db_session),
            SqlAlchemyJuiceSpendRepository(db_session),
            FakePriceFeed(),
            ChainClientRegistry({1: FakeChainClient(1)}),
        )

        # Act
        result = await use_case.execute()

        # Assert
        assert result.value.failed == 1
        pending = await SqlAlchemyJuiceSpendRepository(db_session).get_by_id(spend.spend_id)
        assert pending.status == SpendStatus.PENDING
        assert pending.retry_count == 1
        assert "42161" in pending.error_message

    async def test_process_single_pending_spend(self, db_session, fund_user):
        # Arrange
        await fund_user("user_1", "50.00")
        spend = await create_spend(db_session, "user_1", "30.00")

        # Act
        result = await process_single_spend(db_session, FakeChainClient(42161)).execute(
            spend.spend_id
        )

        # Assert
        assert result.is_ok()
        assert result.value.status == "completed"
        assert result.value.crypto_amount == "15000000000000000"

    async def test_process_completed_spend_rejected(self, db_session, fund_user):
        """
        Given: Spend already settled by the batch worker
        When: An admin processes it manually
        Then: SPEND_ALREADY_COMPLETED and no second payment
        """
        # Arrange
        await fund_user("user_1", "50.00")
        spend = await create_spend(db_session, "user_1", "30.00")
        chain_client = FakeChainClient(42161)
        await settle_spends(db_session, chain_client).execute()

        # Act
        result = await process_single_spend(db_session, chain_client).execute(spend.spend_id)

        # Assert
        assert result.is_err()
        assert result.error.code == "SPEND_ALREADY_COMPLETED"
        assert len(chain_client.submitted) == 1

    async def test_process_failed_attempt_reports_retry(self, db_session, fund_user):
        # Arrange
        await fund_user("user_1", "50.00")
        spend = await create_spend(db_session, "user_1", "30.00")

        # Act
        result = await process_single_spend(
            db_session, FakeChainClient(42161, always_fail=True)
        ).execute(spend.spend_id)

        # Assert
        assert result.is_err()
        assert result.error.code == "SPEND_FAILED_WILL_RETRY"
        assert result.error.message == "Spend failed (attempt 1/5): RPC timeout"

    async def test_process_missing_spend(self, db_session):
        # Act
        result = await process_single_spend(db_session, FakeChainClient(42161)).execute(
            "missing"
        )

        # Assert
        assert result.error.code == "SPEND_NOT_FOUND"


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """File-backed SQLite so concurrent sessions use separate connections"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        echo=False,
        future=True,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest.mark.asyncio
class TestNoDoubleSpend:

    async def test_concurrent_spends_never_overdraw(self, file_session_factory):
        """
        Given: Balance of 30 Juice
        When: 8 spends of 10 Juice run concurrently, each in its own session
        Then: Exactly 3 succeed, 5 get INSUFFICIENT_BALANCE, balance ends at 0 with 3 spends
        """
        # Arrange
        async with file_session_factory() as session:
            repo = SqlAlchemyJuiceBalanceRepository(session)
            await repo.get_or_create("user_1")
            await repo.credit("user_1", Decimal("30.00"), datetime.utcnow())
            await session.commit()

        async def spend_ten():
            async with file_session_factory() as session:
                use_case = SpendJuice(
                    SqlAlchemyUnitOfWork(session),
                    SqlAlchemyJuiceBalanceRepository(session),
                    SqlAlchemyJuiceSpendRepository(session),
                )
                return await use_case.execute(
                    SpendCommandDTO(
                        user_id="user_1",
                        project_id=42,
                        beneficiary_address=BENEFICIARY,
                        amount=Decimal("10.00"),
                    )
                )

        # Act
        results = await asyncio.gather(*[spend_ten() for _ in range(8)])

        # Assert
        succeeded = [result for result in results if result.is_ok()]
        rejected = [result for result in results if result.is_err()]
        assert len(succeeded) == 3
        assert len(rejected) == 5
        assert {result.error.code for result in rejected} == {"INSUFFICIENT_BALANCE"}

        async with file_session_factory() as session:
            balance = await SqlAlchemyJuiceBalanceRepository(session).get_by_user_id("user_1")
            spends = await SqlAlchemyJuiceSpendRepository(session).get_by_user_id("user_1")

        assert balance.balance == Decimal("0")
        assert balance.lifetime_spent == Decimal("30.00")
        assert len(spends) == 3
        assert sum(spend.juice_amount for spend in spends) == Decimal("30.00")

    async def test_claimed_spend_not_claimed_again(self, db_session, fund_user):
        """
        Given: A spend already claimed by another worker (executing)
        When: A second claim and a settlement batch run
        Then: Neither picks it up and nothing is submitted on-chain
        """
        # Arrange
        await fund_user("user_1", "50.00")
        spend = await create_spend(db_session, "user_1", "30.00")
        spend_repo = SqlAlchemyJuiceSpendRepository(db_session)

        claimed = await spend_repo.claim_pending(20, 5, datetime.utcnow())
        await db_session.commit()
        assert [s.id for s in claimed] == [spend.spend_id]

        chain_client = FakeChainClient(42161)

        # Act
        second_claim = await spend_repo.claim_pending(20, 5, datetime.utcnow())
        await db_session.commit()
        batch = await settle_spends(db_session, chain_client).execute()

        # Assert
        assert second_claim == []
        assert batch.value.succeeded == 0
        assert batch.value.failed == 0
        assert chain_client.attempts == 0

        executing = await spend_repo.get_by_id(spend.spend_id)
        assert executing.status == SpendStatus.EXECUTING
        assert executing.retry_count == 0

    async def test_claimed_spend_rejected_by_manual_processing(self, db_session, fund_user):
        # Arrange
        await fund_user("user_1", "50.00")
        spend = await create_spend(db_session, "user_1", "30.00")
        await SqlAlchemyJuiceSpendRepository(db_session).claim_pending(20, 5, datetime.utcnow())
        await db_session.commit()
        chain_client = FakeChainClient(42161)

        # Act
        result = await process_single_spend(db_session, chain_client).execute(spend.spend_id)

        # Assert
        assert result.error.code == "INVALID_STATE"
        assert chain_client.attempts == 0
