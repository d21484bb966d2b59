"""ListSpends Use Case

Admin view of the spend queue, paginated by status.
"""

import math
from juice.libs.result import Result, Return, Error
from juice.app.repositories.juice_spend_repository import JuiceSpendRepository
from juice.domain.juice_spend import SpendStatus
from .dtos import ListSpendsQueryDTO, SpendListResponseDTO
from .mappers import to_spend_dto


class ListSpends:
    def __init__(self, spend_repo: JuiceSpendRepository):
        self.spend_repo = spend_repo

    async def execute(self, query: ListSpendsQueryDTO) -> Result[SpendListResponseDTO]:
        """
        Errors:
            INVALID_STATUS: status is not a spend status
        """
        try:
            status = SpendStatus(query.status)
        except ValueError:
            return Return.err(
                Error(
                    code="INVALID_STATUS",
                    message=f"Unknown spend status: {query.status}",
                    reason=f"Expected one of {[s.value for s in SpendStatus]}",
                )
            )

        try:
            offset = (query.page - 1) * query.limit
            spends, total = await self.spend_repo.list_by_status(status, query.limit, offset)

            return Return.ok(
                SpendListResponseDTO(
                    spends=[to_spend_dto(s) for s in spends],
                    total=total,
                    page=query.page,
                    limit=query.limit,
                    total_pages=math.ceil(total / query.limit),
                )
            )

        except Exception as e:
            return Return.err(
                Error(code="LIST_SPENDS_FAILED", message="Failed to list spends", reason=str(e))
            )
