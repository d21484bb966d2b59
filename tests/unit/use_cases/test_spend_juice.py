"""Unit tests for SpendJuice use case

Tests cover:
- Conditional debit and pending spend creation
- Insufficient balance leaves no spend
- Default chain fallback
- Amounts limited to whole cents
"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock
from datetime import datetime

from juice.app.use_cases.juice.spend_juice import SpendJuice
from pydantic import ValidationError

from juice.app.use_cases.juice.dtos import (
    CashOutCommandDTO,
    CreatePurchaseCommandDTO,
    CreditJuiceCommandDTO,
    SpendCommandDTO,
)
from juice.domain.juice_balance import JuiceBalance, LedgerKind
from juice.domain.juice_spend import SpendStatus


NOW = datetime(2024, 3, 1, 12, 0, 0)
BENEFICIARY = "0x1234567890abcdef1234567890abcdef12345678"


@pytest.fixture
def spend_use_case(mock_uow, mock_balance_repo, mock_spend_repo):
    return SpendJuice(mock_uow, mock_balance_repo, mock_spend_repo, default_chain_id=42161)


def _echo_create(repo):
    async def create(record):
        return record
    repo.create = AsyncMock(side_effect=create)


@pytest.mark.asyncio
class TestSpendJuice:

    async def test_debits_and_queues_pending_spend(
        self, spend_use_case, mock_balance_repo, mock_spend_repo, mock_uow
    ):
        """
        Given: User with 50 Juice
        When: User spends 30 Juice on project 42
        Then: Balance debited once and a pending spend is committed
        """
        # Arrange
        mock_balance_repo.debit = AsyncMock(return_value=True)
        _echo_create(mock_spend_repo)
        command = SpendCommandDTO(
            user_id="user_123",
            project_id=42,
            chain_id=10,
            beneficiary_address=BENEFICIARY,
            memo="gm",
            amount=Decimal("30.00"),
        )

        # Act
        result = await spend_use_case.execute(command, now=NOW)

        # Assert
        assert result.is_ok()
        spend = result.value
        assert spend.status == SpendStatus.PENDING.value
        assert spend.juice_amount == Decimal("30.00")
        assert spend.chain_id == 10
        assert spend.retry_count == 0
        mock_balance_repo.debit.assert_called_once_with(
            "user_123", Decimal("30.00"), LedgerKind.SPEND, NOW
        )
        mock_uow.commit.assert_called_once()

    async def test_missing_chain_uses_default(
        self, spend_use_case, mock_balance_repo, mock_spend_repo
    ):
        # Arrange
        mock_balance_repo.debit = AsyncMock(return_value=True)
        _echo_create(mock_spend_repo)
        command = SpendCommandDTO(
            user_id="user_123",
            project_id=42,
            beneficiary_address=BENEFICIARY,
            amount=Decimal("5.00"),
        )

        # Act
        result = await spend_use_case.execute(command, now=NOW)

        # Assert
        assert result.value.chain_id == 42161

    async def test_insufficient_balance(
        self, spend_use_case, mock_balance_repo, mock_spend_repo, mock_uow
    ):
        """
        Given: User with 20 Juice
        When: User tries to spend 30 Juice
        Then: INSUFFICIENT_BALANCE with required and available amounts, no spend
        """
        # Arrange
        mock_balance_repo.debit = AsyncMock(return_value=False)
        mock_balance_repo.get_by_user_id = AsyncMock(
            return_value=JuiceBalance(user_id="user_123", balance=Decimal("20.00"))
        )
        mock_spend_repo.create = AsyncMock()
        command = SpendCommandDTO(
            user_id="user_123",
            project_id=42,
            beneficiary_address=BENEFICIARY,
            amount=Decimal("30.00"),
        )

        # Act
        result = await spend_use_case.execute(command, now=NOW)

        # Assert
        assert result.is_err()
        assert result.error.code == "INSUFFICIENT_BALANCE"
        assert result.error.message == "Insufficient balance. Required: 30.00, Available: 20.00"
        mock_spend_repo.create.assert_not_called()
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()

    async def test_unknown_user_has_zero_available(
        self, spend_use_case, mock_balance_repo, mock_spend_repo
    ):
        # Arrange
        mock_balance_repo.debit = AsyncMock(return_value=False)
        mock_balance_repo.get_by_user_id = AsyncMock(return_value=None)
        command = SpendCommandDTO(
            user_id="ghost",
            project_id=1,
            beneficiary_address=BENEFICIARY,
            amount=Decimal("1.00"),
        )

        # Act
        result = await spend_use_case.execute(command, now=NOW)

        # Assert
        assert result.error.code == "INSUFFICIENT_BALANCE"
        assert result.error.message.endswith("Available: 0")

    async def test_insert_failure_rolls_back_debit(
        self, spend_use_case, mock_balance_repo, mock_spend_repo, mock_uow
    ):
        # Arrange
        mock_balance_repo.debit = AsyncMock(return_value=True)
        mock_spend_repo.create = AsyncMock(side_effect=Exception("insert failed"))
        command = SpendCommandDTO(
            user_id="user_123",
            project_id=42,
            beneficiary_address=BENEFICIARY,
            amount=Decimal("30.00"),
        )

        # Act
        result = await spend_use_case.execute(command, now=NOW)

        # Assert
        assert result.error.code == "SPEND_JUICE_FAILED"
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()


class TestCentPrecision:
    """Ledger columns hold two decimal places; finer amounts never reach a use case"""

    def test_spend_command_rejects_sub_cent_amount(self):
        """
        Given: A spend of 1.015 Juice
        When: The command is built
        Then: Validation fails before any debit can round it
        """
        # Act & Assert
        with pytest.raises(ValidationError):
            SpendCommandDTO(
                user_id="user_123",
                project_id=42,
                beneficiary_address=BENEFICIARY,
                amount=Decimal("1.015"),
            )

    def test_cash_out_command_rejects_sub_cent_amount(self):
        with pytest.raises(ValidationError):
            CashOutCommandDTO(
                user_id="user_123", destination_address=BENEFICIARY, amount=Decimal("1.005")
            )

    @pytest.mark.parametrize(
        "fields",
        [
            {"fiat_amount": Decimal("10.001")},
            {"fiat_amount": Decimal("10.00"), "juice_amount": Decimal("9.999")},
        ],
    )
    def test_purchase_command_rejects_sub_cent_amounts(self, fields):
        with pytest.raises(ValidationError):
            CreatePurchaseCommandDTO(user_id="user_123", payment_reference="pi_1", **fields)

    def test_credit_command_rejects_sub_cent_amount(self):
        with pytest.raises(ValidationError):
            CreditJuiceCommandDTO(user_id="user_123", purchase_id="p1", amount=Decimal("0.125"))

    def test_whole_cent_amount_accepted(self):
        # Act
        command = SpendCommandDTO(
            user_id="user_123",
            project_id=42,
            beneficiary_address=BENEFICIARY,
            amount=Decimal("1.01"),
        )

        # Assert
        assert command.amount == Decimal("1.01")
