"""GetSpendStats Use Case

Admin dashboard figures: queue depth, throughput and failures.
"""

from datetime import datetime, timedelta
from typing import Optional
from juice.libs.result import Result, Return, Error
from juice.app.repositories.juice_spend_repository import JuiceSpendRepository
from .dtos import SpendStatsDTO


class GetSpendStats:
    def __init__(self, spend_repo: JuiceSpendRepository):
        self.spend_repo = spend_repo

    async def execute(self, now: Optional[datetime] = None) -> Result[SpendStatsDTO]:
        now = now or datetime.utcnow()
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_start = now - timedelta(days=7)

        try:
            stats = await self.spend_repo.get_stats(today_start, week_start)
            return Return.ok(SpendStatsDTO(generated_at=now, **stats))
        except Exception as e:
            return Return.err(
                Error(code="SPEND_STATS_FAILED", message="Failed to load spend stats", reason=str(e))
            )
