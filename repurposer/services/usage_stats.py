"""Cost reporting over the usage log for the current calendar month (UTC)."""
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session

from repurposer.repositories.usage_repository import UsageRepository
from repurposer.services.rate_limiter import start_of_month_utc


@dataclass
class UsageBucket:
    calls: int = 0
    cost: Decimal = Decimal("0")


@dataclass
class UsageStats:
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cost: Decimal = Decimal("0")
    call_count: int = 0
    by_operation: dict[str, UsageBucket] = field(default_factory=dict)
    by_content_type: dict[str, UsageBucket] = field(default_factory=dict)


def get_usage_stats(db: Session, account_id: str) -> UsageStats:
    stats = UsageStats()
    for row in UsageRepository.list_since(db, account_id, start_of_month_utc()):
        cost = Decimal(row.estimated_cost or 0)
        stats.call_count += 1
        stats.total_input_tokens += row.input_tokens or 0
        stats.total_output_tokens += row.output_tokens or 0
        stats.total_cost += cost
        if row.operation:
            bucket = stats.by_operation.setdefault(row.operation, UsageBucket())
            bucket.calls += 1
            bucket.cost += cost
        if row.content_type:
            bucket = stats.by_content_type.setdefault(row.content_type, UsageBucket())
            bucket.calls += 1
            bucket.cost += cost
    return stats
