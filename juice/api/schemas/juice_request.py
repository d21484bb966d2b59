"""Request schemas for Juice API

Pydantic models for validating incoming HTTP requests.
"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"

# Ethereum, Optimism, Arbitrum, Base
SUPPORTED_CHAIN_IDS = (1, 10, 42161, 8453)


def _validate_chain_id(v: Optional[int]) -> Optional[int]:
    if v is not None and v not in SUPPORTED_CHAIN_IDS:
        raise ValueError(f"Unsupported chain_id {v}, expected one of {list(SUPPORTED_CHAIN_IDS)}")
    return v


class SpendRequestSchema(BaseModel):
    """
    Request schema for spending Juice

    Used for POST /juice/spend endpoint.
    """

    user_id: str = Field(..., min_length=1, description="User identifier")
    project_id: int = Field(..., gt=0, description="Project receiving the payment")
    chain_id: Optional[int] = Field(default=None, description="Chain to pay on")

    beneficiary_address: str = Field(
        ...,
        pattern=ADDRESS_PATTERN,
        description="Address receiving project tokens"
    )

    memo: Optional[str] = Field(default=None, max_length=500)

    amount: Decimal = Field(
        ...,
        decimal_places=2,
        ge=1,
        le=50000,
        description="Juice to spend (1 - 50,000)"
    )

    @field_validator("chain_id")
    @classmethod
    def validate_chain_id(cls, v):
        return _validate_chain_id(v)

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


class CashOutRequestSchema(BaseModel):
    """
    Request schema for cashing out Juice

    Used for POST /juice/cash-out endpoint.
    """

    user_id: str = Field(..., min_length=1)
    destination_address: str = Field(..., pattern=ADDRESS_PATTERN)
    chain_id: Optional[int] = Field(default=None)

    amount: Decimal = Field(
        ...,
        decimal_places=2,
        ge=1,
        le=10000,
        description="Juice to cash out (1 - 10,000)"
    )

    @field_validator("chain_id")
    @classmethod
    def validate_chain_id(cls, v):
        return _validate_chain_id(v)


class CancelCashOutRequestSchema(BaseModel):
    user_id: str = Field(..., min_length=1, description="Owner of the cash out")


class PurchaseWebhookSchema(BaseModel):
    """
    Request schema for a completed fiat payment

    Used for POST /juice/purchases (payment processor webhook relay).
    """

    user_id: str = Field(..., min_length=1)
    payment_reference: str = Field(..., min_length=1, max_length=255)
    charge_reference: Optional[str] = Field(default=None)

    amount: Decimal = Field(
        ...,
        decimal_places=2,
        ge=1,
        le=10000,
        description="Fiat amount paid (1 - 10,000)"
    )

    currency: str = Field(default="USD", min_length=3, max_length=3)
    credit_rate: Optional[Decimal] = Field(default=None, gt=0)
    risk_score: Optional[int] = Field(default=None, ge=0, le=100)
    risk_level: Optional[str] = Field(default=None)

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_123",
                "payment_reference": "pi_3Nk2",
                "charge_reference": "ch_3Nk2",
                "amount": "50.00",
                "currency": "USD",
                "risk_score": 15,
                "risk_level": "normal"
            }
        }
