from repurposer.models.user import User
from repurposer.models.account import Account, PlanTier
from repurposer.models.content_source import ContentSource
from repurposer.models.content_generation import ContentGeneration, GenerationStatus
from repurposer.models.generated_content import GeneratedContent
from repurposer.models.api_usage_log import ApiUsageLog, UsageStatus

__all__ = [
    "User", "Account", "PlanTier", "ContentSource", "ContentGeneration", "GenerationStatus",
    "GeneratedContent", "ApiUsageLog", "UsageStatus",
]
