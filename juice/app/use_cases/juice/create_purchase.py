"""CreatePurchase Use Case

Records a fiat purchase reported by the payment processor webhook.
The Juice is not spendable until the purchase clears.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.exc import IntegrityError
from juice.libs.result import Result, Return, Error
from juice.app.services.unit_of_work import UnitOfWork
from juice.app.repositories.juice_purchase_repository import JuicePurchaseRepository
from juice.domain.juice_purchase import JuicePurchase, PurchaseStatus
from .dtos import CreatePurchaseCommandDTO, PurchaseResponseDTO
from .mappers import to_purchase_dto

logger = logging.getLogger(__name__)

DEFAULT_RISK_SCORE = 50

# (max risk score, settlement delay in days)
RISK_DELAY_TIERS = (
    (20, 0),
    (40, 7),
    (60, 30),
    (80, 60),
)
MAX_SETTLEMENT_DELAY_DAYS = 120


def settlement_delay_days_for_risk(
    risk_score: Optional[int], default_risk_score: int = DEFAULT_RISK_SCORE
) -> int:
    """
    Map a processor risk score (0-100) to a settlement delay

    0-20 -> 0 days, 21-40 -> 7, 41-60 -> 30, 61-80 -> 60, 81-100 -> 120.
    A missing score is treated as default_risk_score.
    """
    score = default_risk_score if risk_score is None else risk_score
    for max_score, delay_days in RISK_DELAY_TIERS:
        if score <= max_score:
            return delay_days
    return MAX_SETTLEMENT_DELAY_DAYS


class CreatePurchase:
    """
    Use Case: Record a purchase in clearing

    Business Rules:
    1. One purchase per payment_reference; redelivered webhooks return the
       existing purchase unchanged
    2. juice_amount defaults to fiat_amount (1 Juice = $1)
    3. clears_at = now + settlement delay (explicit, or derived from risk)
    4. Status starts at clearing; CreditDuePurchases credits it later
    """

    def __init__(
        self,
        uow: UnitOfWork,
        purchase_repo: JuicePurchaseRepository,
        default_risk_score: int = DEFAULT_RISK_SCORE,
    ):
        self.uow = uow
        self.purchase_repo = purchase_repo
        self.default_risk_score = default_risk_score

    async def execute(
        self, command: CreatePurchaseCommandDTO, now: Optional[datetime] = None
    ) -> Result[PurchaseResponseDTO]:
        now = now or datetime.utcnow()

        try:
            existing = await self.purchase_repo.get_by_payment_reference(command.payment_reference)
            if existing:
                logger.info(
                    f"Purchase for payment {command.payment_reference} already recorded "
                    f"as {existing.id}"
                )
                return Return.ok(to_purchase_dto(existing))

            if command.settlement_delay_days is not None:
                delay_days = command.settlement_delay_days
            else:
                delay_days = settlement_delay_days_for_risk(
                    command.risk_score, self.default_risk_score
                )

            purchase = JuicePurchase(
                user_id=command.user_id,
                payment_reference=command.payment_reference,
                charge_reference=command.charge_reference,
                risk_score=command.risk_score,
                risk_level=command.risk_level,
                fiat_amount=command.fiat_amount,
                juice_amount=command.juice_amount or command.fiat_amount,
                credit_rate=command.credit_rate,
                currency=command.currency,
                status=PurchaseStatus.CLEARING,
                settlement_delay_days=delay_days,
                clears_at=now + timedelta(days=delay_days),
                created_at=now,
            )

            created = await self.purchase_repo.create(purchase)
            await self.uow.commit()

            logger.info(
                f"Recorded purchase {created.id} for user {created.user_id}: "
                f"{created.juice_amount} Juice clearing in {delay_days} days"
            )
            return Return.ok(to_purchase_dto(created))

        except IntegrityError:
            # Concurrent delivery of the same webhook won the insert
            await self.uow.rollback()
            existing = await self.purchase_repo.get_by_payment_reference(command.payment_reference)
            if existing:
                return Return.ok(to_purchase_dto(existing))
            return Return.err(
                Error(
                    code="CREATE_PURCHASE_FAILED",
                    message=f"Failed to record purchase {command.payment_reference}",
                    reason="Integrity error without an existing purchase",
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREATE_PURCHASE_FAILED",
                    message=f"Failed to record purchase {command.payment_reference}",
                    reason=str(e),
                )
            )
