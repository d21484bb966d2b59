"""Purchase dispute / refund Use Cases

Chargeback and refund notifications from the payment processor. Only
purchases that have not been credited yet (pending or clearing) move;
anything else is left untouched and reported as unchanged.
"""

import logging
from juice.libs.result import Result, Return, Error
from juice.app.services.unit_of_work import UnitOfWork
from juice.app.repositories.juice_purchase_repository import JuicePurchaseRepository
from juice.domain.juice_purchase import PurchaseStatus, REVERSIBLE_PURCHASE_STATUSES

logger = logging.getLogger(__name__)


class _TransitionPurchase:
    target_status: PurchaseStatus
    error_code: str

    def __init__(self, uow: UnitOfWork, purchase_repo: JuicePurchaseRepository):
        self.uow = uow
        self.purchase_repo = purchase_repo

    async def execute(self, payment_reference: str) -> Result[bool]:
        """
        Returns:
            Result[bool]: True if the purchase changed status, False if it
            was missing or no longer reversible (idempotent redelivery)
        """
        try:
            changed = await self.purchase_repo.transition_by_payment_reference(
                payment_reference,
                self.target_status,
                REVERSIBLE_PURCHASE_STATUSES,
            )
            await self.uow.commit()

            if changed:
                logger.warning(
                    f"Purchase for payment {payment_reference} marked {self.target_status.value}"
                )
            else:
                logger.info(
                    f"Purchase for payment {payment_reference} not marked {self.target_status.value}: "
                    f"missing or not in a reversible state"
                )
            return Return.ok(changed)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code=self.error_code,
                    message=f"Failed to mark purchase {payment_reference} {self.target_status.value}",
                    reason=str(e),
                )
            )


class MarkPurchaseDisputed(_TransitionPurchase):
    """Use Case: Payment disputed (chargeback opened)"""

    target_status = PurchaseStatus.DISPUTED
    error_code = "MARK_DISPUTED_FAILED"


class MarkPurchaseRefunded(_TransitionPurchase):
    """Use Case: Payment refunded by the processor"""

    target_status = PurchaseStatus.REFUNDED
    error_code = "MARK_REFUNDED_FAILED"
