"""Unit tests for ReconcileBalances use case"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock

from juice.app.use_cases.juice.reconcile_balances import ReconcileBalances
from juice.domain.juice_balance import JuiceBalance


@pytest.mark.asyncio
class TestReconcileBalances:

    async def test_consistent_balances(self, mock_balance_repo, mock_expiration_repo):
        """
        Given: Balance = purchased - spent - cashed out - expired
        When: Reconciliation runs
        Then: No discrepancies
        """
        # Arrange
        mock_balance_repo.get_all = AsyncMock(
            return_value=[
                JuiceBalance(
                    user_id="user_1",
                    balance=Decimal("10.00"),
                    lifetime_purchased=Decimal("50.00"),
                    lifetime_spent=Decimal("30.00"),
                    lifetime_cashed_out=Decimal("5.00"),
                ),
            ]
        )
        mock_expiration_repo.get_totals_by_user = AsyncMock(return_value={"user_1": Decimal("5.00")})

        # Act
        result = await ReconcileBalances(mock_balance_repo, mock_expiration_repo).execute()

        # Assert
        assert result.is_ok()
        assert result.value.total_balances_checked == 1
        assert result.value.discrepancies_found == 0

    async def test_reports_drift(self, mock_balance_repo, mock_expiration_repo):
        # Arrange
        mock_balance_repo.get_all = AsyncMock(
            return_value=[
                JuiceBalance(
                    user_id="user_2",
                    balance=Decimal("25.00"),
                    lifetime_purchased=Decimal("20.00"),
                ),
            ]
        )
        mock_expiration_repo.get_totals_by_user = AsyncMock(return_value={})

        # Act
        result = await ReconcileBalances(mock_balance_repo, mock_expiration_repo).execute()

        # Assert
        assert result.value.discrepancies_found == 1
        discrepancy = result.value.discrepancies[0]
        assert discrepancy.expected_balance == Decimal("20.00")
        assert discrepancy.discrepancy == Decimal("5.00")

    async def test_repository_failure(self, mock_balance_repo, mock_expiration_repo):
        # Arrange
        mock_balance_repo.get_all = AsyncMock(side_effect=Exception("db down"))

        # Act
        result = await ReconcileBalances(mock_balance_repo, mock_expiration_repo).execute()

        # Assert
        assert result.error.code == "RECONCILIATION_FAILED"
