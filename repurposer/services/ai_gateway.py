"""
AI gateway: the single entry point in front of the Anthropic Messages API.
Authorize -> quota check -> forward -> cost -> usage log -> {text, usage}.

Every forwarded call writes exactly one api_usage_logs row (error rows carry zero
tokens and zero cost). Usage logging is best-effort and never fails the call.
Nothing is retried here; callers decide.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable

import httpx
from sqlalchemy.orm import Session

from repurposer.auth import get_account_from_token
from repurposer.config import Settings, get_settings, missing_server_settings
from repurposer.models.account import Account
from repurposer.models.api_usage_log import UsageStatus
from repurposer.repositories.usage_repository import UsageRepository
from repurposer.services.errors import ProviderError, Unauthorized
from repurposer.services.pricing import DEFAULT_PRICING, CostCalculator, PricingTable, TokenUsage
from repurposer.services.rate_limiter import DEFAULT_PLAN_LIMITS, PlanLimitTable, QuotaTracker

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_ERROR = "Claude API error"


@dataclass(frozen=True)
class LogContext:
    operation: str = "unknown"
    content_type: str | None = None
    generation_id: str | None = None


@dataclass(frozen=True)
class UsageReport:
    model: str
    input_tokens: int
    output_tokens: int
    cache_creation_input_tokens: int
    cache_read_input_tokens: int
    request_time_ms: int
    estimated_cost: Decimal

    def to_dict(self) -> dict:
        return {
            "model": self.model,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cache_creation_input_tokens": self.cache_creation_input_tokens,
            "cache_read_input_tokens": self.cache_read_input_tokens,
            "request_time_ms": self.request_time_ms,
            "estimated_cost": float(self.estimated_cost),
        }


@dataclass(frozen=True)
class GatewayResult:
    text: str
    usage: UsageReport


@dataclass(frozen=True)
class UsageLogError:
    message: str


def build_payload(
    user_prompt: str,
    *,
    model: str,
    max_tokens: int,
    system_prompt: str = "",
    cache_system: bool = False,
    temperature: float | None = None,
) -> dict:
    """Messages API body. With cache_system the system prompt is sent as an ephemeral-cached block."""
    payload: dict[str, Any] = {
        "model": model,
        "max_tokens": max_tokens,
        "messages": [{"role": "user", "content": user_prompt}],
    }
    if system_prompt and cache_system:
        payload["system"] = [
            {"type": "text", "text": system_prompt, "cache_control": {"type": "ephemeral"}},
        ]
    elif system_prompt:
        payload["system"] = system_prompt
    if temperature is not None and temperature != 1:
        payload["temperature"] = temperature
    return payload


def extract_error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return DEFAULT_PROVIDER_ERROR
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return DEFAULT_PROVIDER_ERROR


def extract_text(data: dict) -> str:
    """Text of the first text content block, or empty string."""
    for block in data.get("content") or []:
        if isinstance(block, dict) and block.get("type", "text") == "text":
            return block.get("text") or ""
    return ""


class AiGateway:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        settings: Settings | None = None,
        pricing: PricingTable = DEFAULT_PRICING,
        limits: PlanLimitTable = DEFAULT_PLAN_LIMITS,
        http_client: httpx.AsyncClient | None = None,
        repository: UsageRepository | None = None,
    ):
        self._session_factory = session_factory
        self._settings = settings or get_settings()
        self._calculator = CostCalculator(pricing)
        self._repo = repository or UsageRepository()
        self._quota = QuotaTracker(session_factory, limits, repository=self._repo)
        self._http_client = http_client

    def missing_settings(self) -> list[str]:
        return missing_server_settings(self._settings)

    @property
    def default_model(self) -> str:
        return self._settings.anthropic_model

    # ---------- Authorize ----------

    def _lookup_account(self, token: str) -> Account | None:
        db = self._session_factory()
        try:
            return get_account_from_token(token, db)
        finally:
            db.close()

    async def authorize(self, token: str | None) -> Account:
        if not token:
            raise Unauthorized()
        loop = asyncio.get_running_loop()
        account = await loop.run_in_executor(None, self._lookup_account, token)
        if account is None:
            raise Unauthorized()
        return account

    # ---------- Call ----------

    async def call(self, token: str | None, payload: dict, log_context: LogContext | None = None) -> GatewayResult:
        account = await self.authorize(token)
        return await self.complete(account, payload, log_context)

    async def check_quota(self, account: Account) -> None:
        """Raise if the account is already at a window limit, without calling the provider."""
        await self._quota.check(account)

    async def complete(self, account: Account, payload: dict, log_context: LogContext | None = None) -> GatewayResult:
        """Quota check, then forward. Raises RateLimitExceeded, RateLimitCheckUnavailable or ProviderError."""
        await self._quota.check(account)
        # The provider request and its usage row complete even if the caller goes away.
        return await asyncio.shield(self._forward(account.id, payload, log_context or LogContext()))

    async def _post(self, payload: dict) -> httpx.Response:
        headers = {
            "content-type": "application/json",
            "x-api-key": self._settings.anthropic_api_key,
            "anthropic-version": self._settings.anthropic_version,
        }
        if self._http_client is not None:
            return await self._http_client.post(self._settings.anthropic_api_url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self._settings.provider_timeout_seconds) as client:
            return await client.post(self._settings.anthropic_api_url, json=payload, headers=headers)

    async def _forward(self, account_id: str, payload: dict, log_context: LogContext) -> GatewayResult:
        model = payload.get("model") or self.default_model
        started = time.monotonic()
        error_message = None
        data: dict = {}
        try:
            response = await self._post(payload)
            if response.is_success:
                data = response.json()
                if not isinstance(data, dict):
                    error_message = DEFAULT_PROVIDER_ERROR
            else:
                error_message = extract_error_message(response)
        except httpx.HTTPError as e:
            logger.exception("Provider request failed")
            error_message = str(e) or DEFAULT_PROVIDER_ERROR
        except ValueError:
            error_message = DEFAULT_PROVIDER_ERROR
        request_time_ms = int((time.monotonic() - started) * 1000)

        if error_message is not None:
            log_error = await self._record_usage(
                account_id, model, log_context,
                request_time_ms=request_time_ms,
                status=UsageStatus.ERROR.value,
                error_message=error_message,
            )
            if log_error is not None:
                logger.warning("Usage log write failed (provider error kept): %s", log_error.message)
            raise ProviderError(error_message)

        tokens = TokenUsage.from_provider(data.get("usage"))
        usage = UsageReport(
            model=model,
            input_tokens=tokens.input_tokens,
            output_tokens=tokens.output_tokens,
            cache_creation_input_tokens=tokens.cache_creation_input_tokens,
            cache_read_input_tokens=tokens.cache_read_input_tokens,
            request_time_ms=request_time_ms,
            estimated_cost=self._calculator.cost(tokens, model),
        )
        log_error = await self._record_usage(
            account_id, model, log_context,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            cache_creation_input_tokens=usage.cache_creation_input_tokens,
            cache_read_input_tokens=usage.cache_read_input_tokens,
            estimated_cost=usage.estimated_cost,
            request_time_ms=request_time_ms,
            status=UsageStatus.SUCCESS.value,
        )
        if log_error is not None:
            logger.warning("Usage log write failed: %s", log_error.message)
        return GatewayResult(text=extract_text(data), usage=usage)

    # ---------- Usage log ----------

    def _insert_usage(self, account_id: str, model: str, fields: dict) -> None:
        db = self._session_factory()
        try:
            self._repo.insert_usage_record(db, account_id, model, **fields)
        finally:
            db.close()

    async def _record_usage(
        self, account_id: str, model: str, log_context: LogContext, **fields
    ) -> UsageLogError | None:
        """Write one usage row. Never raises; a failure comes back as UsageLogError."""
        fields.update(
            operation=log_context.operation or "unknown",
            content_type=log_context.content_type,
            generation_id=log_context.generation_id,
        )
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._insert_usage, account_id, model, fields)
        except Exception as e:
            return UsageLogError(str(e))
        return None
