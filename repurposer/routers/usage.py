from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from repurposer.auth import get_current_account
from repurposer.database import get_db
from repurposer.models.account import Account
from repurposer.schemas.usage import UsageBucketOut, UsageSummaryResponse
from repurposer.services.rate_limiter import MONTHLY_GENERATION_LIMITS, count_generations_this_month
from repurposer.services.usage_stats import get_usage_stats

router = APIRouter(prefix="/api/usage", tags=["usage"])


@router.get("/summary", response_model=UsageSummaryResponse)
def usage_summary(db: Session = Depends(get_db), account: Account = Depends(get_current_account)):
    """Token, cost and call totals for this month, grouped by operation and content type."""
    stats = get_usage_stats(db, account.id)
    return UsageSummaryResponse(
        total_input_tokens=stats.total_input_tokens,
        total_output_tokens=stats.total_output_tokens,
        total_cost=float(stats.total_cost),
        call_count=stats.call_count,
        by_operation={k: UsageBucketOut(calls=v.calls, cost=float(v.cost)) for k, v in stats.by_operation.items()},
        by_content_type={k: UsageBucketOut(calls=v.calls, cost=float(v.cost)) for k, v in stats.by_content_type.items()},
        generations_this_month=count_generations_this_month(db, account.id),
        generation_limit=MONTHLY_GENERATION_LIMITS[account.plan],
    )
