"""Admin Juice API Routes

Operator views of the spend queue and the manual settlement trigger.
"""

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from juice.app.services.chain_client import ChainClientRegistry
from juice.app.services.price_feed import PriceFeed
from juice.app.use_cases.juice.dtos import (
    ListSpendsQueryDTO,
    SpendListResponseDTO,
    SpendResponseDTO,
    SpendStatsDTO,
)
from juice.app.use_cases.juice.list_spends import ListSpends
from juice.app.use_cases.juice.get_spend_stats import GetSpendStats
from juice.app.use_cases.juice.process_single_spend import ProcessSingleSpend
from juice.adapter.repositories import (
    SqlAlchemyJuiceBalanceRepository,
    SqlAlchemyJuiceSpendRepository,
)
from juice.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from juice.depends import get_chain_registry, get_config, get_price_feed, get_session
from juice.api.error import raise_for_error

router = APIRouter(prefix="/admin/juice", tags=["Admin"])


@router.get("/spends", response_model=SpendListResponseDTO)
async def list_spends(
    status: str = Query("pending"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    """Paginated spends in one status (default pending), newest first."""
    result = await ListSpends(SqlAlchemyJuiceSpendRepository(session)).execute(
        ListSpendsQueryDTO(status=status, page=page, limit=limit)
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/spends/{spend_id}/process", response_model=SpendResponseDTO)
async def process_spend(
    spend_id: str,
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
    chain_registry: ChainClientRegistry = Depends(get_chain_registry),
    price_feed: PriceFeed = Depends(get_price_feed),
):
    """
    Settle one pending spend now.

    **Returns:**
    - 200: Spend completed, or failed permanently and refunded
    - 404: Spend not found
    - 409: Spend is not pending
    - 400: Attempt failed and will be retried, or settlement not configured
    """
    use_case = ProcessSingleSpend(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyJuiceBalanceRepository(session),
        SqlAlchemyJuiceSpendRepository(session),
        price_feed,
        chain_registry,
        max_retries=config.JUICE_MAX_RETRIES,
    )
    result = await use_case.execute(spend_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/stats", response_model=SpendStatsDTO)
async def spend_stats(session: AsyncSession = Depends(get_session)):
    """Pending, executing, completed (today / 7 days) and failed spend figures."""
    result = await GetSpendStats(SqlAlchemyJuiceSpendRepository(session)).execute()

    if result.is_err():
        raise_for_error(result.error)

    return result.value
