"""ReconcileBalances Use Case

Checks every balance against its ledger history to detect drift.
"""

import logging
import time
from datetime import datetime
from decimal import Decimal
from juice.libs.result import Result, Return, Error
from juice.app.repositories.juice_balance_repository import JuiceBalanceRepository
from juice.app.repositories.credit_expiration_repository import CreditExpirationRepository
from .dtos import BalanceDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class ReconcileBalances:
    """
    Use Case: Reconcile balances against lifetime counters

    Business Rules:
    1. expected = lifetime_purchased - lifetime_spent - lifetime_cashed_out - expired
    2. Any balance != expected is reported and logged
    3. Read-only: nothing is corrected automatically
    """

    def __init__(
        self,
        balance_repo: JuiceBalanceRepository,
        expiration_repo: CreditExpirationRepository,
    ):
        self.balance_repo = balance_repo
        self.expiration_repo = expiration_repo

    async def execute(self) -> Result[ReconciliationResultDTO]:
        start_time = time.time()
        reconciliation_time = datetime.utcnow()

        try:
            logger.info("Starting Juice balance reconciliation")

            balances = await self.balance_repo.get_all()
            expired_by_user = await self.expiration_repo.get_totals_by_user()

            discrepancies: list[BalanceDiscrepancyDTO] = []

            for balance in balances:
                expired = expired_by_user.get(balance.user_id, Decimal("0"))
                expected = (
                    balance.lifetime_purchased
                    - balance.lifetime_spent
                    - balance.lifetime_cashed_out
                    - expired
                )

                if balance.balance != expected:
                    discrepancy = balance.balance - expected
                    discrepancies.append(
                        BalanceDiscrepancyDTO(
                            user_id=balance.user_id,
                            balance=balance.balance,
                            expected_balance=expected,
                            discrepancy=discrepancy,
                        )
                    )
                    logger.warning(
                        f"Discrepancy found for user {balance.user_id}: "
                        f"balance={balance.balance}, expected={expected}, "
                        f"discrepancy={discrepancy}"
                    )

            execution_time_ms = int((time.time() - start_time) * 1000)

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"out of {len(balances)} balances in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {len(balances)} balances consistent "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(
                ReconciliationResultDTO(
                    total_balances_checked=len(balances),
                    discrepancies_found=len(discrepancies),
                    discrepancies=discrepancies,
                    reconciliation_time=reconciliation_time,
                    execution_time_ms=execution_time_ms,
                )
            )

        except Exception as e:
            logger.error(f"Balance reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile Juice balances",
                    reason=str(e),
                )
            )
