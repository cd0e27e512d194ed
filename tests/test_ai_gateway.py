import asyncio
import json
from decimal import Decimal

import httpx
import pytest

from conftest import ProviderStub, claude_response, make_account, usage_rows
from repurposer.auth import create_access_token
from repurposer.models import PlanTier, User
from repurposer.services.ai_gateway import AiGateway, LogContext, build_payload
from repurposer.services.errors import ProviderError, RateLimitExceeded, Unauthorized
from repurposer.services.pricing import ModelRates, PricingTable
from repurposer.services.rate_limiter import PlanLimits, PlanLimitTable

MODEL = "claude-sonnet-4-20250514"


def _payload(**extra):
    return {"model": MODEL, "max_tokens": 64, "messages": [{"role": "user", "content": "hi"}], **extra}


def _gateway(session_factory, settings, stub, per_minute=100, **kwargs):
    return AiGateway(
        session_factory,
        settings=settings,
        limits=PlanLimitTable({PlanTier.FREE: PlanLimits(per_minute=per_minute, per_day=1000)}),
        http_client=stub.client(),
        **kwargs,
    )


class _BrokenUsageRepository:
    @staticmethod
    def count_since(db, account_id, since):
        return 0

    @staticmethod
    def insert_usage_record(db, account_id, model, **fields):
        raise RuntimeError("disk full")


class TestBuildPayload:
    def test_plain_system(self):
        payload = build_payload("hello", model=MODEL, max_tokens=10, system_prompt="be brief")
        assert payload["system"] == "be brief"
        assert payload["messages"] == [{"role": "user", "content": "hello"}]
        assert "temperature" not in payload

    def test_cached_system(self):
        payload = build_payload("hello", model=MODEL, max_tokens=10, system_prompt="voice", cache_system=True)
        assert payload["system"] == [
            {"type": "text", "text": "voice", "cache_control": {"type": "ephemeral"}},
        ]

    def test_temperature(self):
        assert build_payload("x", model=MODEL, max_tokens=1, temperature=0.3)["temperature"] == 0.3
        assert "temperature" not in build_payload("x", model=MODEL, max_tokens=1, temperature=1)


class TestAuthorize:
    def test_missing_token(self, session_factory, settings):
        gateway = _gateway(session_factory, settings, ProviderStub())
        with pytest.raises(Unauthorized):
            asyncio.run(gateway.call(None, _payload()))

    def test_garbage_token(self, session_factory, settings):
        stub = ProviderStub()
        gateway = _gateway(session_factory, settings, stub)
        with pytest.raises(Unauthorized) as exc:
            asyncio.run(gateway.call("not-a-jwt", _payload()))
        assert exc.value.status_code == 401
        assert stub.requests == []

    def test_user_without_account(self, db, session_factory, settings):
        user = User(email="lonely@example.com")
        db.add(user)
        db.commit()
        gateway = _gateway(session_factory, settings, ProviderStub())
        with pytest.raises(Unauthorized):
            asyncio.run(gateway.call(create_access_token(user.id, user.email), _payload()))


class TestCall:
    def test_success_logs_cost(self, session_factory, settings, account, token):
        stub = ProviderStub(claude_response(
            "Draft text",
            input_tokens=1000,
            output_tokens=200,
            cache_creation_input_tokens=100,
            cache_read_input_tokens=50,
        ))
        gateway = _gateway(session_factory, settings, stub)

        result = asyncio.run(gateway.call(token, _payload(), LogContext(operation="test_op", content_type="blog_post")))

        assert result.text == "Draft text"
        expected = (Decimal(1000) * 3 + Decimal(200) * 15 + Decimal(100) * Decimal("3.75") + Decimal(50) * Decimal("0.30")) / 1_000_000
        assert result.usage.estimated_cost == expected
        assert result.usage.to_dict()["estimated_cost"] == float(expected)

        [row] = usage_rows(session_factory, account.id)
        assert row.status == "success"
        assert row.operation == "test_op"
        assert row.content_type == "blog_post"
        assert row.input_tokens == 1000
        assert row.cache_read_input_tokens == 50
        assert Decimal(row.estimated_cost) == expected
        assert row.error_message is None

    def test_forwards_payload_and_credentials(self, session_factory, settings, token):
        stub = ProviderStub()
        gateway = _gateway(session_factory, settings, stub)
        asyncio.run(gateway.call(token, _payload(temperature=0.2)))

        [request] = stub.requests
        assert request.headers["x-api-key"] == "test-key"
        assert request.headers["anthropic-version"] == settings.anthropic_version
        assert json.loads(request.content)["temperature"] == 0.2

    def test_custom_pricing_table(self, session_factory, settings, token):
        pricing = PricingTable(default=ModelRates(Decimal(1), Decimal(1), Decimal(1), Decimal(1)))
        stub = ProviderStub(claude_response(input_tokens=1_000_000, output_tokens=1_000_000))
        gateway = _gateway(session_factory, settings, stub, pricing=pricing)
        assert asyncio.run(gateway.call(token, _payload())).usage.estimated_cost == Decimal(2)

    def test_minute_quota(self, session_factory, settings, account, token):
        stub = ProviderStub()
        gateway = _gateway(session_factory, settings, stub, per_minute=2)

        asyncio.run(gateway.call(token, _payload()))
        asyncio.run(gateway.call(token, _payload()))
        with pytest.raises(RateLimitExceeded) as exc:
            asyncio.run(gateway.call(token, _payload()))

        assert str(exc.value) == "Rate limit exceeded (per minute)"
        assert len(stub.requests) == 2
        assert len(usage_rows(session_factory, account.id)) == 2

    def test_quota_is_per_account(self, db, session_factory, settings, token):
        other = make_account(db, email="other@example.com")
        gateway = _gateway(session_factory, settings, ProviderStub(), per_minute=1)
        asyncio.run(gateway.call(token, _payload()))
        asyncio.run(gateway.complete(other, _payload()))


class TestProviderFailures:
    def test_error_status_logged_with_zero_tokens(self, session_factory, settings, account, token):
        stub = ProviderStub(httpx.Response(529, json={"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}}))
        gateway = _gateway(session_factory, settings, stub)

        with pytest.raises(ProviderError) as exc:
            asyncio.run(gateway.call(token, _payload()))

        assert exc.value.message == "Overloaded"
        assert exc.value.status_code == 502
        [row] = usage_rows(session_factory, account.id)
        assert row.status == "error"
        assert row.error_message == "Overloaded"
        assert row.input_tokens == 0
        assert row.output_tokens == 0
        assert Decimal(row.estimated_cost) == 0

    def test_unparseable_error_body(self, session_factory, settings, token):
        stub = ProviderStub(httpx.Response(500, text="<html>bad gateway</html>"))
        gateway = _gateway(session_factory, settings, stub)
        with pytest.raises(ProviderError) as exc:
            asyncio.run(gateway.call(token, _payload()))
        assert exc.value.message == "Claude API error"

    def test_network_error(self, session_factory, settings, account, token):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        gateway = AiGateway(
            session_factory,
            settings=settings,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
        )
        with pytest.raises(ProviderError):
            asyncio.run(gateway.call(token, _payload()))
        [row] = usage_rows(session_factory, account.id)
        assert row.status == "error"

    def test_failed_calls_count_toward_quota(self, session_factory, settings, token):
        stub = ProviderStub(httpx.Response(500, json={"error": {"message": "boom"}}))
        gateway = _gateway(session_factory, settings, stub, per_minute=1)
        with pytest.raises(ProviderError):
            asyncio.run(gateway.call(token, _payload()))
        with pytest.raises(RateLimitExceeded):
            asyncio.run(gateway.call(token, _payload()))


class TestUsageLogFailure:
    def test_log_failure_does_not_fail_call(self, session_factory, settings, account, token):
        gateway = _gateway(session_factory, settings, ProviderStub(claude_response("ok")), repository=_BrokenUsageRepository())
        result = asyncio.run(gateway.call(token, _payload()))
        assert result.text == "ok"
        assert usage_rows(session_factory, account.id) == []

    def test_log_failure_keeps_provider_error(self, session_factory, settings, token):
        stub = ProviderStub(httpx.Response(400, json={"error": {"message": "max_tokens too large"}}))
        gateway = _gateway(session_factory, settings, stub, repository=_BrokenUsageRepository())
        with pytest.raises(ProviderError) as exc:
            asyncio.run(gateway.call(token, _payload()))
        assert exc.value.message == "max_tokens too large"


class TestCallerCancellation:
    def test_cancelled_caller_still_gets_usage_row(self, session_factory, settings, account, token):
        async def scenario():
            started = asyncio.Event()

            async def slow_provider(request):
                started.set()
                await asyncio.sleep(0.3)
                return claude_response("late reply", input_tokens=5, output_tokens=1)

            gateway = AiGateway(
                session_factory,
                settings=settings,
                http_client=httpx.AsyncClient(transport=httpx.MockTransport(slow_provider)),
            )
            caller = asyncio.create_task(gateway.call(token, _payload(), LogContext(operation="chat")))
            await asyncio.wait_for(started.wait(), timeout=5)
            caller.cancel()
            with pytest.raises(asyncio.CancelledError):
                await caller
            await asyncio.sleep(0.6)

        asyncio.run(scenario())

        rows = usage_rows(session_factory, account.id)
        assert [(r.status, r.input_tokens, r.operation) for r in rows] == [("success", 5, "chat")]
