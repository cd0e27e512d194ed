"""
Per-account quotas for AI calls, counted from the api_usage_logs table.
- Sliding windows: requests in the last 60 seconds and the last 24 hours.
- Monthly cap on completed generations (calendar month, UTC).

Check-then-call against a counted log: concurrent requests can each see a count
just below the limit and all proceed. This is a soft limit.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Mapping

from sqlalchemy.orm import Session

from repurposer.models.account import Account, PlanTier
from repurposer.repositories.usage_repository import UsageRepository
from repurposer.services.errors import RateLimitCheckUnavailable, RateLimitExceeded

logger = logging.getLogger(__name__)

MINUTE_WINDOW = timedelta(seconds=60)
DAY_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class PlanLimits:
    per_minute: int
    per_day: int


@dataclass(frozen=True)
class PlanLimitTable:
    """Plan tier -> limits. Unknown tiers get the FREE limits."""
    limits: Mapping[PlanTier, PlanLimits] = field(default_factory=dict)

    def for_plan(self, plan: PlanTier | str | None) -> PlanLimits:
        tier = plan if isinstance(plan, PlanTier) else PlanTier.resolve(plan)
        return self.limits.get(tier) or self.limits[PlanTier.FREE]


DEFAULT_PLAN_LIMITS = PlanLimitTable({
    PlanTier.FREE: PlanLimits(per_minute=10, per_day=200),
    PlanTier.STARTER: PlanLimits(per_minute=30, per_day=1000),
    PlanTier.PRO: PlanLimits(per_minute=60, per_day=3000),
    PlanTier.ENTERPRISE: PlanLimits(per_minute=300, per_day=20000),
})

# Completed generations per calendar month
MONTHLY_GENERATION_LIMITS = {
    PlanTier.FREE: 10,
    PlanTier.STARTER: 20,
    PlanTier.PRO: 50,
    PlanTier.ENTERPRISE: 999999,
}


@dataclass(frozen=True)
class WindowCounts:
    minute: int
    day: int


class QuotaTracker:
    """Counts an account's logged calls in the two windows and enforces plan limits."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        limits: PlanLimitTable = DEFAULT_PLAN_LIMITS,
        repository: UsageRepository | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self._session_factory = session_factory
        self._limits = limits
        self._repo = repository or UsageRepository()
        self._clock = clock

    def limits_for(self, account: Account) -> PlanLimits:
        return self._limits.for_plan(account.plan_tier)

    def _count_since(self, account_id: str, since: datetime) -> int:
        db = self._session_factory()
        try:
            return self._repo.count_since(db, account_id, since)
        finally:
            db.close()

    async def window_counts(self, account_id: str) -> WindowCounts:
        """Both window queries run concurrently, each on its own session."""
        now = self._clock()
        loop = asyncio.get_running_loop()
        try:
            minute, day = await asyncio.gather(
                loop.run_in_executor(None, self._count_since, account_id, now - MINUTE_WINDOW),
                loop.run_in_executor(None, self._count_since, account_id, now - DAY_WINDOW),
            )
        except Exception as e:
            logger.warning("Rate limit count failed for account %s: %s", account_id, e)
            raise RateLimitCheckUnavailable() from e
        return WindowCounts(minute=minute, day=day)

    async def check(self, account: Account) -> WindowCounts:
        """Raise RateLimitExceeded if either window is already at its limit."""
        limits = self.limits_for(account)
        counts = await self.window_counts(account.id)
        if counts.minute >= limits.per_minute:
            raise RateLimitExceeded("minute")
        if counts.day >= limits.per_day:
            raise RateLimitExceeded("day")
        return counts


def start_of_month_utc(now: datetime | None = None) -> datetime:
    now = now or datetime.utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def count_generations_this_month(db: Session, account_id: str) -> int:
    return UsageRepository.count_completed_generations_since(db, account_id, start_of_month_utc())


def check_generation_limit(db: Session, account: Account) -> tuple[bool, str]:
    """
    Returns (allowed, error_message).
    If allowed, error_message is empty.
    """
    limit = MONTHLY_GENERATION_LIMITS[account.plan]
    count = count_generations_this_month(db, account.id)
    if count >= limit:
        return False, f"Monthly limit reached ({limit} generations per month). Upgrade your plan or try again next month."
    return True, ""
