from typing import Any

from pydantic import BaseModel, Field


# ---- Gateway proxy ----

class GatewayPayload(BaseModel):
    """Messages API body forwarded as-is. Extra provider fields pass through."""
    model: str = Field(..., min_length=1)
    max_tokens: int | None = None  # provider validates; forwarded as given
    messages: list[dict[str, Any]]
    system: str | list[dict[str, Any]] | None = None
    temperature: float | None = None

    class Config:
        extra = "allow"


class GatewayLogContext(BaseModel):
    operation: str | None = None
    contentType: str | None = None
    generationId: str | None = None


class GatewayRequest(BaseModel):
    payload: GatewayPayload
    logContext: GatewayLogContext = Field(default_factory=GatewayLogContext)


class UsageOut(BaseModel):
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    request_time_ms: int = 0
    estimated_cost: float = 0.0


class GatewayResponse(BaseModel):
    text: str
    usage: UsageOut


# ---- Brand voice ----

class BrandVoiceRequest(BaseModel):
    examples: list[str] = Field(default_factory=list, max_length=20)
    style_guide: str = Field("", max_length=100000)
    target_audience: str = ""
    words_to_avoid: str = ""


class BrandVoiceResponse(BaseModel):
    brand_voice_profile: str
    usage: UsageOut
