"""Unit tests for CashOutSettlementWorker"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

from juice.app.services.chain_client import ChainClientRegistry
from juice.app.use_cases.juice.dtos import SettlementBatchResultDTO, SettlementFailureDTO
from juice.worker.cash_out_settler import CashOutSettlementWorker
from tests.fakes import FakeChainClient, FakePriceFeed


def mock_session_factory():
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=session)


@pytest.mark.asyncio
class TestCashOutSettlementWorker:

    @patch("juice.worker.cash_out_settler.SettleCashOuts")
    @patch("juice.worker.cash_out_settler.create_async_engine")
    @patch("juice.worker.cash_out_settler.sessionmaker")
    async def test_alerts_on_permanent_failures(
        self, mock_sessionmaker, mock_create_engine, mock_use_case_class
    ):
        """
        Given: A batch in which one cash out exhausted its retries
        When: run_once completes
        Then: One failure alert is sent
        """
        # Arrange
        mock_sessionmaker.return_value = mock_session_factory()
        mock_create_engine.return_value = MagicMock()

        failure = SettlementFailureDTO(
            kind="cash_out",
            record_id="cash_out_1",
            user_id="user_123",
            chain_id=42161,
            juice_amount=Decimal("10.00"),
            retry_count=5,
            error_message="Failed after 5 attempts: RPC timeout",
            failed_at=datetime.utcnow(),
        )
        mock_result = MagicMock()
        mock_result.is_err.return_value = False
        mock_result.value = SettlementBatchResultDTO(failed=1, permanent_failures=[failure])
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        notification_service = MagicMock()
        notification_service.send_settlement_failure_alert = AsyncMock(return_value=True)

        worker = CashOutSettlementWorker(
            db_uri="sqlite+aiosqlite://",
            batch_size=10,
            chain_registry=ChainClientRegistry({42161: FakeChainClient()}),
            price_feed=FakePriceFeed(),
            notification_service=notification_service,
        )

        # Act
        result = await worker.run_once()

        # Assert
        assert result.failed == 1
        mock_use_case.execute.assert_called_once_with(batch_size=10)
        notification_service.send_settlement_failure_alert.assert_called_once_with(failure)

    @patch("juice.worker.cash_out_settler.SettleCashOuts")
    @patch("juice.worker.cash_out_settler.create_async_engine")
    @patch("juice.worker.cash_out_settler.sessionmaker")
    async def test_raises_on_use_case_error(
        self, mock_sessionmaker, mock_create_engine, mock_use_case_class
    ):
        # Arrange
        mock_sessionmaker.return_value = mock_session_factory()
        mock_create_engine.return_value = MagicMock()

        mock_result = MagicMock()
        mock_result.is_err.return_value = True
        mock_result.error.message = "Failed to claim available cash outs"
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        worker = CashOutSettlementWorker(
            db_uri="sqlite+aiosqlite://",
            chain_registry=ChainClientRegistry(),
            price_feed=FakePriceFeed(),
            notification_service=MagicMock(),
        )

        # Act & Assert
        with pytest.raises(RuntimeError, match="Cash out settlement failed"):
            await worker.run_once()
