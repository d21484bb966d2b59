"""Unit tests for CreditProcessorWorker"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from juice.app.use_cases.juice.dtos import CreditDuePurchasesResultDTO
from juice.worker.credit_processor import CreditProcessorWorker


class StopLoop(Exception):
    """Breaks out of run_forever"""


@pytest.mark.asyncio
class TestCreditProcessorWorker:

    @patch("juice.worker.credit_processor.ApplicationConfig")
    @patch("juice.worker.credit_processor.CreditDuePurchases")
    @patch("juice.worker.credit_processor.create_async_engine")
    @patch("juice.worker.credit_processor.sessionmaker")
    async def test_run_once_credits_batch(
        self, mock_sessionmaker, mock_create_engine, mock_use_case_class, mock_app_config
    ):
        """
        Given: Configured batch size of 50
        When: run_once is called
        Then: CreditDuePurchases runs with that batch size
        """
        # Arrange
        mock_app_config.CREDIT_BATCH_SIZE = 50
        session = MagicMock()
        session.__aenter__ = AsyncMock(return_value=session)
        session.__aexit__ = AsyncMock(return_value=False)
        mock_sessionmaker.return_value = MagicMock(return_value=session)
        mock_create_engine.return_value = MagicMock()

        mock_use_case = MagicMock()
        mock_result = MagicMock()
        mock_result.is_err.return_value = False
        mock_result.value = CreditDuePurchasesResultDTO(credited=3, failed=0, still_pending=7)
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        # Act
        worker = CreditProcessorWorker(db_uri="sqlite+aiosqlite://")
        result = await worker.run_once()

        # Assert
        assert result.credited == 3
        assert result.still_pending == 7
        mock_use_case.execute.assert_called_once_with(batch_size=50)

    @patch("juice.worker.credit_processor.ApplicationConfig")
    @patch("juice.worker.credit_processor.asyncio.sleep")
    @patch("juice.worker.credit_processor.create_async_engine")
    async def test_run_forever_uses_interval(
        self, mock_create_engine, mock_sleep, mock_app_config
    ):
        # Arrange
        mock_create_engine.return_value = MagicMock()
        mock_sleep.side_effect = StopLoop()

        worker = CreditProcessorWorker(db_uri="sqlite+aiosqlite://", batch_size=10)
        worker.run_once = AsyncMock(
            return_value=CreditDuePurchasesResultDTO(credited=0, failed=0, still_pending=0)
        )

        # Act
        with pytest.raises(StopLoop):
            await worker.run_forever(interval_seconds=300)

        # Assert
        worker.run_once.assert_called_once()
        mock_sleep.assert_called_once_with(300)
