"""Credit Expiration Domain Entity

Append-only audit record written when an inactive balance is zeroed.
"""

from datetime import datetime
from decimal import Decimal
from sqlmodel import Field, Column
from sqlalchemy import Numeric
from juice.domain.base import BaseModel, generate_uuid


class CreditExpiration(BaseModel, table=True):
    """
    Credit Expiration - audit trail of expired Juice

    Domain Rules:
    - Immutable once written
    - amount is the balance at the moment it was zeroed
    """

    __tablename__ = "credit_expirations"

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
    )

    user_id: str = Field(
        index=True,
        description="User whose balance expired"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(20, 2), nullable=False),
        description="Juice removed from the balance"
    )

    last_activity_at: datetime = Field(
        description="User's last activity at the time of expiry"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Expiration timestamp"
    )
