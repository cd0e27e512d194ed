from pydantic import BaseModel


class UsageBucketOut(BaseModel):
    calls: int
    cost: float


class UsageSummaryResponse(BaseModel):
    """Current calendar month (UTC)."""
    total_input_tokens: int
    total_output_tokens: int
    total_cost: float
    call_count: int
    by_operation: dict[str, UsageBucketOut]
    by_content_type: dict[str, UsageBucketOut]
    generations_this_month: int
    generation_limit: int
