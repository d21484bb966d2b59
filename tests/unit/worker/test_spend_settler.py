"""Unit tests for SpendSettlementWorker"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import datetime

from juice.app.services.chain_client import ChainClientRegistry
from juice.app.use_cases.juice.dtos import SettlementBatchResultDTO, SettlementFailureDTO
from juice.worker.spend_settler import SpendSettlementWorker
from tests.fakes import FakeChainClient, FakePriceFeed


def mock_session_factory():
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=session)


@pytest.fixture
def notification_service():
    service = MagicMock()
    service.send_settlement_failure_alert = AsyncMock(return_value=True)
    return service


@pytest.fixture
def batch_with_failure():
    return SettlementBatchResultDTO(
        succeeded=2,
        failed=1,
        still_pending=0,
        permanent_failures=[
            SettlementFailureDTO(
                kind="spend",
                record_id="spend_1",
                user_id="user_123",
                chain_id=42161,
                juice_amount=Decimal("30.00"),
                retry_count=5,
                error_message="Failed after 5 attempts: RPC timeout",
                failed_at=datetime.utcnow(),
            )
        ],
    )


@pytest.mark.asyncio
class TestSpendSettlementWorker:

    @patch("juice.worker.spend_settler.SettleSpends")
    @patch("juice.worker.spend_settler.create_async_engine")
    @patch("juice.worker.spend_settler.sessionmaker")
    async def test_alerts_on_permanent_failures(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_use_case_class,
        notification_service,
        batch_with_failure,
    ):
        """
        Given: A batch in which one spend exhausted its retries
        When: run_once completes
        Then: One failure alert is sent for that spend
        """
        # Arrange
        mock_sessionmaker.return_value = mock_session_factory()
        mock_create_engine.return_value = MagicMock()

        mock_use_case = MagicMock()
        mock_result = MagicMock()
        mock_result.is_err.return_value = False
        mock_result.value = batch_with_failure
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        worker = SpendSettlementWorker(
            db_uri="sqlite+aiosqlite://",
            batch_size=20,
            chain_registry=ChainClientRegistry({42161: FakeChainClient()}),
            price_feed=FakePriceFeed(),
            notification_service=notification_service,
        )

        # Act
        result = await worker.run_once()

        # Assert
        assert result.succeeded == 2
        mock_use_case.execute.assert_called_once_with(batch_size=20)
        notification_service.send_settlement_failure_alert.assert_called_once_with(
            batch_with_failure.permanent_failures[0]
        )

    @patch("juice.worker.spend_settler.SettleSpends")
    @patch("juice.worker.spend_settler.create_async_engine")
    @patch("juice.worker.spend_settler.sessionmaker")
    async def test_raises_on_use_case_error(
        self, mock_sessionmaker, mock_create_engine, mock_use_case_class, notification_service
    ):
        # Arrange
        mock_sessionmaker.return_value = mock_session_factory()
        mock_create_engine.return_value = MagicMock()

        mock_use_case = MagicMock()
        mock_result = MagicMock()
        mock_result.is_err.return_value = True
        mock_result.error.message = "Failed to claim pending spends"
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        worker = SpendSettlementWorker(
            db_uri="sqlite+aiosqlite://",
            chain_registry=ChainClientRegistry(),
            price_feed=FakePriceFeed(),
            notification_service=notification_service,
        )

        # Act & Assert
        with pytest.raises(RuntimeError, match="Spend settlement failed"):
            await worker.run_once()
        notification_service.send_settlement_failure_alert.assert_not_called()

    @patch("juice.worker.spend_settler.create_async_engine")
    async def test_shutdown_closes_clients(self, mock_create_engine, notification_service):
        # Arrange
        mock_engine = MagicMock()
        mock_engine.dispose = AsyncMock()
        mock_create_engine.return_value = mock_engine
        chain = FakeChainClient()

        worker = SpendSettlementWorker(
            db_uri="sqlite+aiosqlite://",
            chain_registry=ChainClientRegistry({42161: chain}),
            price_feed=FakePriceFeed(),
            notification_service=notification_service,
        )

        # Act
        await worker.shutdown()

        # Assert
        assert chain.closed
        mock_engine.dispose.assert_called_once()
