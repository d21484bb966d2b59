"""Juice Purchase Domain Entity

Fiat-funded purchase of Juice. Held in clearing until a risk-based
settlement delay elapses, then credited to the user's balance.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, Numeric, String, Text
from juice.domain.base import BaseModel, generate_uuid


class PurchaseStatus(str, Enum):
    """Purchase status workflow: pending -> clearing -> credited | disputed | refunded"""
    PENDING = "pending"      # Payment received, delay not yet computed
    CLEARING = "clearing"    # Waiting for settlement delay to pass
    CREDITED = "credited"    # Juice credited to balance
    DISPUTED = "disputed"    # Chargeback received, never credited
    REFUNDED = "refunded"    # Refunded by the payment provider, never credited


REVERSIBLE_PURCHASE_STATUSES = (PurchaseStatus.PENDING, PurchaseStatus.CLEARING)


class JuicePurchase(BaseModel, table=True):
    """
    Juice Purchase - funding intent from the payment provider

    Domain Rules:
    - payment_reference is unique (duplicate webhooks map to one purchase)
    - clearing -> credited only through CreditJuice, once clears_at <= now
    - Disputes and refunds only affect purchases still pending or clearing
    """

    __tablename__ = "juice_purchases"
    __table_args__ = (
        CheckConstraint(
            "settlement_delay_days >= 0 AND settlement_delay_days <= 120",
            name="juice_purchase_delay_range",
        ),
        CheckConstraint(
            "risk_score IS NULL OR (risk_score >= 0 AND risk_score <= 100)",
            name="juice_purchase_risk_range",
        ),
        Index("ix_juice_purchases_status_clears_at", "status", "clears_at"),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Purchase identifier (UUID)"
    )

    user_id: str = Field(
        index=True,
        description="Purchasing user"
    )

    payment_reference: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True),
        description="External payment reference (e.g. payment intent id)"
    )

    charge_reference: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="External charge reference"
    )

    risk_score: Optional[int] = Field(
        default=None,
        description="Provider risk score (0-100)"
    )

    risk_level: Optional[str] = Field(
        default=None,
        sa_column=Column(String(20), nullable=True),
        description="Provider risk level (normal, elevated, highest)"
    )

    fiat_amount: Decimal = Field(
        sa_column=Column(Numeric(20, 2), nullable=False),
        description="Fiat amount paid"
    )

    juice_amount: Decimal = Field(
        sa_column=Column(Numeric(20, 2), nullable=False),
        description="Juice to credit once cleared"
    )

    credit_rate: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(12, 4), nullable=True),
        description="Fiat to Juice rate at purchase time"
    )

    currency: str = Field(
        default="USD",
        sa_column=Column(String(3), nullable=False, default="USD"),
        description="Currency code (ISO 4217)"
    )

    status: PurchaseStatus = Field(
        default=PurchaseStatus.CLEARING,
        description="Purchase status"
    )

    settlement_delay_days: int = Field(
        default=0,
        description="Risk-based clearing delay in days (0-120)"
    )

    clears_at: Optional[datetime] = Field(
        default=None,
        description="Earliest time the purchase may be credited"
    )

    credited_at: Optional[datetime] = Field(
        default=None,
        description="When the purchase was credited"
    )

    error_message: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Purchase creation timestamp"
    )
