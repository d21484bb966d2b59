"""Data Transfer Objects for Juice Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class BalanceResponseDTO(BaseModel):
    """
    Response DTO for get balance operation

    Returned by GetBalance use case.
    """

    user_id: str = Field(..., description="User identifier")
    balance: Decimal = Field(..., description="Current spendable Juice")
    lifetime_purchased: Decimal = Field(..., description="Total Juice credited from purchases")
    lifetime_spent: Decimal = Field(..., description="Total Juice spent on projects")
    lifetime_cashed_out: Decimal = Field(..., description="Total Juice cashed out")
    last_activity_at: datetime = Field(..., description="Last balance-affecting operation")
    expires_at: datetime = Field(..., description="Informational expiry date")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_123",
                "balance": "20.00",
                "lifetime_purchased": "50.00",
                "lifetime_spent": "30.00",
                "lifetime_cashed_out": "0.00",
                "last_activity_at": "2024-01-01T00:00:00Z",
                "expires_at": "3023-01-01T00:00:00Z"
            }
        }


class CreatePurchaseCommandDTO(BaseModel):
    """
    Command DTO for recording a fiat purchase

    Used as input to CreatePurchase use case (payment webhook intake).
    """

    user_id: str = Field(..., description="User identifier")

    payment_reference: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="External payment identifier (idempotency key)"
    )

    charge_reference: Optional[str] = Field(
        default=None,
        description="External charge identifier"
    )

    fiat_amount: Decimal = Field(..., gt=0, decimal_places=2, description="Amount paid in fiat")

    juice_amount: Optional[Decimal] = Field(
        default=None,
        gt=0,
        decimal_places=2,
        description="Juice to credit (defaults to fiat_amount, 1 Juice = $1)"
    )

    credit_rate: Optional[Decimal] = Field(
        default=None,
        description="ETH/USD rate at purchase time (informational)"
    )

    currency: str = Field(default="USD", max_length=3)

    risk_score: Optional[int] = Field(
        default=None,
        ge=0,
        le=100,
        description="Payment processor risk score (0-100)"
    )

    risk_level: Optional[str] = Field(default=None)

    settlement_delay_days: Optional[int] = Field(
        default=None,
        ge=0,
        le=120,
        description="Explicit delay; derived from risk_score when omitted"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_123",
                "payment_reference": "pi_3Nk2",
                "fiat_amount": "50.00",
                "risk_score": 15
            }
        }


class PurchaseResponseDTO(BaseModel):
    purchase_id: str
    user_id: str
    payment_reference: str
    fiat_amount: Decimal
    juice_amount: Decimal
    currency: str
    status: str
    risk_score: Optional[int] = None
    settlement_delay_days: int
    clears_at: Optional[datetime] = None
    credited_at: Optional[datetime] = None
    created_at: datetime


class CreditJuiceCommandDTO(BaseModel):
    """
    Command DTO for crediting a cleared purchase

    Used as input to CreditJuice use case.
    """

    user_id: str = Field(..., description="Owner of the purchase")
    purchase_id: str = Field(..., description="Purchase being credited")
    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Juice to credit")


class CreditJuiceResponseDTO(BaseModel):
    purchase_id: str
    user_id: str
    amount: Decimal
    balance_after: Decimal
    credited_at: datetime


class CreditDuePurchasesResultDTO(BaseModel):
    """Outcome of one credit batch"""

    credited: int = Field(..., description="Purchases credited in this batch")
    failed: int = Field(..., description="Purchases that could not be credited")
    still_pending: int = Field(..., description="Purchases still clearing after the batch")


class SpendCommandDTO(BaseModel):
    """
    Command DTO for spending Juice on a project

    Used as input to SpendJuice use case.
    """

    user_id: str = Field(..., description="User identifier")
    project_id: int = Field(..., gt=0, description="Project receiving the payment")

    chain_id: Optional[int] = Field(
        default=None,
        description="Chain to pay on (defaults to the configured default chain)"
    )

    beneficiary_address: str = Field(..., description="Address receiving project tokens")
    memo: Optional[str] = Field(default=None, max_length=500)
    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Juice to spend")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_123",
                "project_id": 42,
                "chain_id": 42161,
                "beneficiary_address": "0x1234567890abcdef1234567890abcdef12345678",
                "memo": "Supporting the launch",
                "amount": "30.00"
            }
        }


class SpendResponseDTO(BaseModel):
    """
    Response DTO for a spend

    Returned by SpendJuice, ProcessSingleSpend and the spend listings.
    """

    spend_id: str
    user_id: str
    project_id: int
    chain_id: int
    beneficiary_address: str
    memo: Optional[str] = None
    juice_amount: Decimal
    status: str
    crypto_amount: Optional[str] = None
    rate: Optional[Decimal] = None
    tx_hash: Optional[str] = None
    tokens_received: Optional[str] = None
    error_message: Optional[str] = None
    retry_count: int
    created_at: datetime
    updated_at: datetime


class CashOutCommandDTO(BaseModel):
    """
    Command DTO for converting Juice to crypto

    Used as input to InitiateCashOut use case.
    """

    user_id: str = Field(..., description="User identifier")
    destination_address: str = Field(..., description="Address receiving the crypto")

    chain_id: Optional[int] = Field(
        default=None,
        description="Chain to pay on (defaults to the configured default chain)"
    )

    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Juice to cash out")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_123",
                "destination_address": "0x1234567890abcdef1234567890abcdef12345678",
                "chain_id": 42161,
                "amount": "10.00"
            }
        }


class CashOutResponseDTO(BaseModel):
    cash_out_id: str
    user_id: str
    destination_address: str
    chain_id: int
    juice_amount: Decimal
    status: str
    available_at: datetime
    crypto_amount: Optional[str] = None
    rate: Optional[Decimal] = None
    tx_hash: Optional[str] = None
    error_message: Optional[str] = None
    retry_count: int
    created_at: datetime
    updated_at: datetime


class CancelCashOutCommandDTO(BaseModel):
    cash_out_id: str = Field(..., description="Cash out to cancel")
    user_id: str = Field(..., description="Requesting user (must own the cash out)")


class SettlementFailureDTO(BaseModel):
    """
    A settlement that failed permanently

    Retries were exhausted and the Juice was refunded to the user.
    """

    kind: str = Field(..., description="spend or cash_out")
    record_id: str
    user_id: str
    chain_id: int
    juice_amount: Decimal
    retry_count: int
    error_message: Optional[str] = None
    failed_at: datetime


class SettlementBatchResultDTO(BaseModel):
    """Outcome of one settlement batch"""

    succeeded: int = Field(default=0)
    failed: int = Field(default=0, description="Failed attempts (retryable or permanent)")
    still_pending: int = Field(default=0, description="Records still pending after the batch")

    permanent_failures: List[SettlementFailureDTO] = Field(
        default_factory=list,
        description="Records that exhausted their retries in this batch"
    )


class ExpirationResultDTO(BaseModel):
    """Outcome of one expiration sweep"""

    expired: int = Field(..., description="Balances zeroed")
    total_amount: Decimal = Field(..., description="Juice removed by the sweep")
    failed: int = Field(..., description="Balances that could not be expired")


class TransactionItemDTO(BaseModel):
    """
    One entry of a user's merged history

    Purchases carry a positive amount; spends and cash outs a negative one.
    """

    id: str
    type: str = Field(..., description="purchase, spend or cash_out")
    amount: Decimal = Field(..., description="Signed Juice amount")
    status: str
    created_at: datetime
    details: Dict[str, Any] = Field(default_factory=dict)


class TransactionListResponseDTO(BaseModel):
    user_id: str
    transactions: List[TransactionItemDTO]
    total: int
    limit: int
    offset: int


class ListSpendsQueryDTO(BaseModel):
    """Query DTO for the admin spend listing"""

    status: str = Field(default="pending")
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)


class SpendListResponseDTO(BaseModel):
    spends: List[SpendResponseDTO]
    total: int
    page: int
    limit: int
    total_pages: int


class SpendStatsDTO(BaseModel):
    """Admin dashboard figures for the spend queue"""

    pending_count: int
    pending_total: Decimal
    executing_count: int
    today_completed_count: int
    today_completed_total: Decimal
    week_completed_count: int
    week_completed_total: Decimal
    failed_count: int
    generated_at: datetime


class BalanceDiscrepancyDTO(BaseModel):
    """
    Balance that does not match its ledger history

    expected_balance = purchased - spent - cashed_out - expired
    """

    user_id: str
    balance: Decimal
    expected_balance: Decimal
    discrepancy: Decimal


class ReconciliationResultDTO(BaseModel):
    total_balances_checked: int
    discrepancies_found: int
    discrepancies: List[BalanceDiscrepancyDTO]
    reconciliation_time: datetime
    execution_time_ms: int
