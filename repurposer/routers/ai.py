"""
AI endpoints:
- POST /api/ai/messages — authenticated, rate-limited, metered proxy to the Anthropic Messages API
- POST /api/ai/brand-voice — analyze examples / style guide into the account's brand voice profile
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from repurposer.auth import bearer_token, get_current_account
from repurposer.core.dependencies import get_gateway, get_session_factory
from repurposer.models.account import Account
from repurposer.schemas.ai import BrandVoiceRequest, BrandVoiceResponse, GatewayRequest, GatewayResponse
from repurposer.services.ai_gateway import AiGateway, LogContext
from repurposer.services.brand_voice_service import BrandVoiceService
from repurposer.services.errors import GatewayError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@router.post("/messages", response_model=GatewayResponse)
async def proxy_messages(request: Request, gateway: AiGateway = Depends(get_gateway)):
    """
    Forward a Messages API payload for the caller's account.
    Errors use {"error": message}: 401 auth, 400 body, 429 rate limit,
    503 rate limit check unavailable, 502 provider failure, 500 misconfiguration.
    """
    missing = gateway.missing_settings()
    if missing:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server configuration error", missing=missing)

    token = bearer_token(request.headers.get("authorization"))
    if not token:
        return _error(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

    try:
        raw = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON body")
    try:
        body = GatewayRequest.model_validate(raw)
    except ValidationError:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid payload")

    log_context = LogContext(
        operation=body.logContext.operation or "unknown",
        content_type=body.logContext.contentType,
        generation_id=body.logContext.generationId,
    )
    try:
        result = await gateway.call(token, body.payload.model_dump(exclude_none=True), log_context)
    except GatewayError as e:
        return _error(e.status_code, e.message)
    except Exception as e:
        logger.exception("AI gateway proxy failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Server error")

    return {"text": result.text, "usage": result.usage.to_dict()}


@router.post("/brand-voice", response_model=BrandVoiceResponse)
async def analyze_brand_voice(
    body: BrandVoiceRequest,
    account: Account = Depends(get_current_account),
    gateway: AiGateway = Depends(get_gateway),
    session_factory=Depends(get_session_factory),
):
    """Build a brand voice profile from writing examples, a style guide, or both; saved on the account."""
    service = BrandVoiceService(gateway, session_factory)
    try:
        updated, result = await service.analyze(
            account,
            examples=body.examples,
            style_guide=body.style_guide,
            target_audience=body.target_audience,
            words_to_avoid=body.words_to_avoid,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except GatewayError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    return BrandVoiceResponse(brand_voice_profile=updated.brand_voice_profile, usage=result.usage.to_dict())
