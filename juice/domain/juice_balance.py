"""Juice Balance Domain Entity

Stored-value balance per user. 1 Juice = $1 USD.
Each user has exactly one balance row, created lazily.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Numeric
from juice.domain.base import BaseModel


# Expiry is enforced through last_activity_at; this date is informational only
BALANCE_EXPIRES_AFTER = timedelta(days=365 * 1000)


class LedgerKind(str, Enum):
    """Outbound movement kinds and the lifetime counter each one adjusts"""
    SPEND = "spend"
    CASH_OUT = "cash_out"


class JuiceBalance(BaseModel, table=True):
    """
    Juice Balance - current spendable stored value for a user

    Domain Rules:
    - One row per user (user_id is the primary key)
    - Balance must be non-negative
    - Lifetime counters only move through ledger operations; refunds
      decrement the counter the original debit incremented
    - Never deleted; expiration zeroes the balance only
    """

    __tablename__ = "juice_balances"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="juice_balance_non_negative"),
        CheckConstraint("lifetime_purchased >= 0", name="juice_lifetime_purchased_non_negative"),
        CheckConstraint("lifetime_spent >= 0", name="juice_lifetime_spent_non_negative"),
        CheckConstraint("lifetime_cashed_out >= 0", name="juice_lifetime_cashed_out_non_negative"),
    )

    user_id: str = Field(
        primary_key=True,
        description="User identifier (one balance per user)"
    )

    balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(20, 2), nullable=False, default=0),
        description="Current spendable balance (must be >= 0)"
    )

    lifetime_purchased: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(20, 2), nullable=False, default=0),
        description="Total Juice ever credited from purchases"
    )

    lifetime_spent: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(20, 2), nullable=False, default=0),
        description="Total Juice spent on projects (net of refunds)"
    )

    lifetime_cashed_out: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(20, 2), nullable=False, default=0),
        description="Total Juice cashed out to crypto (net of refunds)"
    )

    last_activity_at: datetime = Field(
        default_factory=datetime.utcnow,
        index=True,
        description="Last balance-affecting operation; drives expiration"
    )

    expires_at: datetime = Field(
        default_factory=lambda: datetime.utcnow() + BALANCE_EXPIRES_AFTER,
        description="Informational expiry date (not enforced)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Balance creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )
