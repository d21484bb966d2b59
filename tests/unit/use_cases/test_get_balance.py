"""Unit tests for GetBalance use case"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock
from datetime import datetime

from juice.app.use_cases.juice.get_balance import GetBalance
from juice.domain.juice_balance import JuiceBalance


@pytest.fixture
def get_balance_use_case(mock_uow, mock_balance_repo):
    return GetBalance(uow=mock_uow, balance_repo=mock_balance_repo)


@pytest.mark.asyncio
class TestGetBalance:

    async def test_returns_balance_and_lifetime_counters(
        self, get_balance_use_case, mock_balance_repo, mock_uow
    ):
        """
        Given: User with purchases and spends
        When: GetBalance is executed
        Then: Balance and lifetime counters are returned
        """
        # Arrange
        mock_balance_repo.get_or_create = AsyncMock(
            return_value=JuiceBalance(
                user_id="user_123",
                balance=Decimal("20.00"),
                lifetime_purchased=Decimal("50.00"),
                lifetime_spent=Decimal("30.00"),
                lifetime_cashed_out=Decimal("0"),
                last_activity_at=datetime.utcnow(),
            )
        )

        # Act
        result = await get_balance_use_case.execute("user_123")

        # Assert
        assert result.is_ok()
        assert result.value.balance == Decimal("20.00")
        assert result.value.lifetime_purchased == Decimal("50.00")
        assert result.value.lifetime_spent == Decimal("30.00")
        mock_uow.commit.assert_called_once()

    async def test_new_user_gets_zero_balance(self, get_balance_use_case, mock_balance_repo):
        """
        Given: User with no balance row
        When: GetBalance is executed
        Then: A zero balance is created and returned
        """
        # Arrange
        mock_balance_repo.get_or_create = AsyncMock(return_value=JuiceBalance(user_id="new_user"))

        # Act
        result = await get_balance_use_case.execute("new_user")

        # Assert
        assert result.is_ok()
        assert result.value.balance == Decimal("0")
        mock_balance_repo.get_or_create.assert_called_once_with("new_user")

    async def test_repository_error_rolls_back(
        self, get_balance_use_case, mock_balance_repo, mock_uow
    ):
        # Arrange
        mock_balance_repo.get_or_create = AsyncMock(side_effect=Exception("db down"))

        # Act
        result = await get_balance_use_case.execute("user_123")

        # Assert
        assert result.is_err()
        assert result.error.code == "GET_BALANCE_FAILED"
        assert result.error.reason == "db down"
        mock_uow.rollback.assert_called_once()
