"""Juice API Routes

FastAPI routes for balances, spends, cash outs and purchase intake.
"""

from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from juice.api.schemas.juice_request import (
    CancelCashOutRequestSchema,
    CashOutRequestSchema,
    PurchaseWebhookSchema,
    SpendRequestSchema,
)
from juice.app.use_cases.juice.dtos import (
    BalanceResponseDTO,
    CancelCashOutCommandDTO,
    CashOutCommandDTO,
    CashOutResponseDTO,
    CreatePurchaseCommandDTO,
    PurchaseResponseDTO,
    SpendCommandDTO,
    SpendResponseDTO,
    TransactionListResponseDTO,
)
from juice.app.use_cases.juice.get_balance import GetBalance
from juice.app.use_cases.juice.spend_juice import SpendJuice
from juice.app.use_cases.juice.initiate_cash_out import InitiateCashOut
from juice.app.use_cases.juice.cancel_cash_out import CancelCashOut
from juice.app.use_cases.juice.create_purchase import CreatePurchase
from juice.app.use_cases.juice.mark_purchase import MarkPurchaseDisputed, MarkPurchaseRefunded
from juice.app.use_cases.juice.list_transactions import ListTransactions
from juice.app.use_cases.juice.user_history import (
    ListUserCashOuts,
    ListUserPurchases,
    ListUserSpends,
)
from juice.adapter.repositories import (
    SqlAlchemyJuiceBalanceRepository,
    SqlAlchemyJuiceCashOutRepository,
    SqlAlchemyJuicePurchaseRepository,
    SqlAlchemyJuiceSpendRepository,
    SqlAlchemyJuiceTransactionRepository,
)
from juice.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from juice.depends import get_config, get_session
from juice.api.error import raise_for_error

router = APIRouter(prefix="/juice", tags=["Juice"])


@router.get("/balance/{user_id}", response_model=BalanceResponseDTO)
async def get_balance(user_id: str, session: AsyncSession = Depends(get_session)):
    """
    Get a user's Juice balance and lifetime counters.

    Users without a balance get a zero balance created on first read.
    """
    use_case = GetBalance(SqlAlchemyUnitOfWork(session), SqlAlchemyJuiceBalanceRepository(session))
    result = await use_case.execute(user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/spend",
    response_model=SpendResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        402: {
            "description": "Insufficient balance",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INSUFFICIENT_BALANCE",
                            "message": "Insufficient balance. Required: 30.00, Available: 20.00"
                        }
                    }
                }
            }
        }
    }
)
async def spend_juice(
    request: SpendRequestSchema,
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """
    Spend Juice on a project.

    The balance is debited immediately and a pending spend is queued; the
    on-chain payment is made by the spend settlement worker.

    **Returns:**
    - 201: Spend queued
    - 402: Insufficient balance
    - 400: Invalid request parameters
    """
    use_case = SpendJuice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyJuiceSpendRepository(session),
        default_chain_id=config.JUICE_DEFAULT_CHAIN_ID,
    )
    command = SpendCommandDTO(
        user_id=request.user_id,
        project_id=request.project_id,
        chain_id=request.chain_id,
        beneficiary_address=request.beneficiary_address,
        memo=request.memo,
        amount=request.amount,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/cash-out", response_model=CashOutResponseDTO, status_code=status.HTTP_201_CREATED)
async def cash_out(
    request: CashOutRequestSchema,
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """
    Convert Juice to crypto.

    The Juice is debited now; the transfer is made once the holding delay
    has passed. Cancel with POST /juice/cash-out/{id}/cancel before then.
    """
    use_case = InitiateCashOut(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyJuiceCashOutRepository(session),
        default_chain_id=config.JUICE_DEFAULT_CHAIN_ID,
        delay_hours=config.JUICE_CASH_OUT_DELAY_HOURS,
    )
    command = CashOutCommandDTO(
        user_id=request.user_id,
        destination_address=request.destination_address,
        chain_id=request.chain_id,
        amount=request.amount,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/cash-out/{cash_out_id}/cancel", response_model=CashOutResponseDTO)
async def cancel_cash_out(
    cash_out_id: str,
    request: CancelCashOutRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Cancel a pending cash out and refund the Juice.

    **Returns:**
    - 200: Cancelled
    - 404: Not found (or owned by another user)
    - 409: No longer pending
    """
    use_case = CancelCashOut(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyJuiceCashOutRepository(session),
    )
    result = await use_case.execute(
        CancelCashOutCommandDTO(cash_out_id=cash_out_id, user_id=request.user_id)
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/transactions/{user_id}", response_model=TransactionListResponseDTO)
async def list_transactions(
    user_id: str,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """Merged purchase / spend / cash-out history, newest first."""
    use_case = ListTransactions(SqlAlchemyJuiceTransactionRepository(session))
    result = await use_case.execute(user_id, limit=limit, offset=offset)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/purchases/{user_id}", response_model=List[PurchaseResponseDTO])
async def list_purchases(user_id: str, session: AsyncSession = Depends(get_session)):
    result = await ListUserPurchases(SqlAlchemyJuicePurchaseRepository(session)).execute(user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/spends/{user_id}", response_model=List[SpendResponseDTO])
async def list_spends(user_id: str, session: AsyncSession = Depends(get_session)):
    result = await ListUserSpends(SqlAlchemyJuiceSpendRepository(session)).execute(user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/cash-outs/{user_id}", response_model=List[CashOutResponseDTO])
async def list_cash_outs(user_id: str, session: AsyncSession = Depends(get_session)):
    result = await ListUserCashOuts(SqlAlchemyJuiceCashOutRepository(session)).execute(user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/purchases", response_model=PurchaseResponseDTO, status_code=status.HTTP_201_CREATED)
async def record_purchase(
    request: PurchaseWebhookSchema,
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
):
    """
    Record a completed fiat payment.

    Called by the payment webhook relay. Redelivery of the same
    payment_reference returns the already recorded purchase.
    """
    use_case = CreatePurchase(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuicePurchaseRepository(session),
        default_risk_score=config.JUICE_DEFAULT_RISK_SCORE,
    )
    command = CreatePurchaseCommandDTO(
        user_id=request.user_id,
        payment_reference=request.payment_reference,
        charge_reference=request.charge_reference,
        fiat_amount=request.amount,
        credit_rate=request.credit_rate,
        currency=request.currency,
        risk_score=request.risk_score,
        risk_level=request.risk_level,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/purchases/{payment_reference}/dispute")
async def dispute_purchase(payment_reference: str, session: AsyncSession = Depends(get_session)):
    """Mark a not yet credited purchase as disputed (chargeback)."""
    use_case = MarkPurchaseDisputed(
        SqlAlchemyUnitOfWork(session), SqlAlchemyJuicePurchaseRepository(session)
    )
    result = await use_case.execute(payment_reference)

    if result.is_err():
        raise_for_error(result.error)

    return {"payment_reference": payment_reference, "updated": result.value}


@router.post("/purchases/{payment_reference}/refund")
async def refund_purchase(payment_reference: str, session: AsyncSession = Depends(get_session)):
    """Mark a not yet credited purchase as refunded."""
    use_case = MarkPurchaseRefunded(
        SqlAlchemyUnitOfWork(session), SqlAlchemyJuicePurchaseRepository(session)
    )
    result = await use_case.execute(payment_reference)

    if result.is_err():
        raise_for_error(result.error)

    return {"payment_reference": payment_reference, "updated": result.value}
