"""Juice Cash Out Domain Entity

Conversion of Juice back to crypto sent to a user-controlled address.
Debited immediately, held for a fraud-prevention delay, settled on-chain.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String, Text
from juice.domain.base import BaseModel, generate_uuid


class CashOutStatus(str, Enum):
    """Cash out status workflow: pending -> processing -> completed | failed | cancelled"""
    PENDING = "pending"          # Debited, waiting for available_at
    PROCESSING = "processing"    # Claimed by a settlement worker
    COMPLETED = "completed"      # Crypto sent
    FAILED = "failed"            # Retries exhausted, Juice refunded
    CANCELLED = "cancelled"      # Cancelled by the user while pending


class JuiceCashOut(BaseModel, table=True):
    """
    Juice Cash Out - queued transfer of crypto to the user

    Domain Rules:
    - Created in the same transaction as the balance debit
    - Not eligible for settlement before available_at
    - cancelled is only reachable from pending, by the owning user
    """

    __tablename__ = "juice_cash_outs"
    __table_args__ = (
        Index("ix_juice_cash_outs_status_available_at", "status", "available_at"),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Cash out identifier (UUID)"
    )

    user_id: str = Field(
        index=True,
        description="Cashing-out user"
    )

    destination_address: str = Field(
        sa_column=Column(String(42), nullable=False),
        description="User-controlled address receiving the crypto"
    )

    chain_id: int = Field(
        description="Chain the transfer settles on"
    )

    juice_amount: Decimal = Field(
        sa_column=Column(Numeric(20, 2), nullable=False),
        description="Juice debited for this cash out"
    )

    crypto_amount: Optional[str] = Field(
        default=None,
        sa_column=Column(String(78), nullable=True),
        description="Amount sent on-chain, in wei"
    )

    rate: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(12, 4), nullable=True),
        description="USD per native token used for conversion"
    )

    status: CashOutStatus = Field(
        default=CashOutStatus.PENDING,
        description="Cash out status"
    )

    available_at: datetime = Field(
        description="Holding delay release time"
    )

    tx_hash: Optional[str] = Field(
        default=None,
        sa_column=Column(String(66), nullable=True),
    )

    error_message: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Last settlement error"
    )

    retry_count: int = Field(
        default=0,
        description="Failed settlement attempts so far"
    )

    last_retry_at: Optional[datetime] = Field(
        default=None,
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Cash out creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )
