"""Juice Spend Domain Entity

Outbound payment of Juice to a project. The balance is debited when the
spend is recorded; the on-chain payment settles asynchronously.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String, Text
from juice.domain.base import BaseModel, generate_uuid


class SpendStatus(str, Enum):
    """Spend status workflow: pending -> executing -> completed | failed | refunded"""
    PENDING = "pending"        # Juice debited, awaiting execution
    EXECUTING = "executing"    # Claimed by a settlement worker
    COMPLETED = "completed"    # Paid on-chain
    FAILED = "failed"          # Retries exhausted, Juice refunded
    REFUNDED = "refunded"      # Manually refunded to the balance


class JuiceSpend(BaseModel, table=True):
    """
    Juice Spend - queued payment to a project

    Domain Rules:
    - Created in the same transaction as the balance debit
    - completed, failed and refunded are terminal
    - retry_count only grows; reaching the retry limit is the only path to failed
    """

    __tablename__ = "juice_spends"
    __table_args__ = (
        Index("ix_juice_spends_status_created_at", "status", "created_at"),
        Index("ix_juice_spends_project", "project_id", "chain_id"),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Spend identifier (UUID)"
    )

    user_id: str = Field(
        index=True,
        description="Spending user"
    )

    project_id: int = Field(
        description="Target project"
    )

    chain_id: int = Field(
        description="Chain the payment settles on"
    )

    beneficiary_address: str = Field(
        sa_column=Column(String(42), nullable=False),
        description="Address receiving project tokens"
    )

    memo: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    juice_amount: Decimal = Field(
        sa_column=Column(Numeric(20, 2), nullable=False),
        description="Juice debited for this spend"
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

    status: SpendStatus = Field(
        default=SpendStatus.PENDING,
        description="Spend status"
    )

    tx_hash: Optional[str] = Field(
        default=None,
        sa_column=Column(String(66), nullable=True),
    )

    tokens_received: Optional[str] = Field(
        default=None,
        sa_column=Column(String(78), nullable=True),
        description="Project tokens received by the beneficiary"
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
        description="When the last failed attempt was recorded"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Spend creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )
