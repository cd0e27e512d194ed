import asyncio
from decimal import Decimal

import pytest

from conftest import ProviderStub, claude_response, make_account, usage_rows
from repurposer.models import ContentGeneration, GeneratedContent
from repurposer.services.ai_gateway import AiGateway, GatewayResult, UsageReport
from repurposer.services.content_types import ContentType, LinkedInLength, ToneOverride
from repurposer.services.errors import ProviderError
from repurposer.services.generation_service import GenerationService, unique_types

RESPONSES = {
    "linkedin_post": "---POST 1---\nFirst post\n---POST 2---\nSecond post",
    "blog_post": "Great Title\n\nBody of the blog.",
    "email_sequence": "---EMAIL 1---\nSubject: Hello\nBody one\n---EMAIL 2---\nSubject: Again\nBody two",
    "twitter_thread": "1/ Hook\n2/ Point\n3/ Wrap",
    "executive_summary": "Key takeaway first.",
}


def _usage(model="claude-sonnet-4-20250514"):
    return UsageReport(
        model=model,
        input_tokens=10,
        output_tokens=5,
        cache_creation_input_tokens=0,
        cache_read_input_tokens=0,
        request_time_ms=1,
        estimated_cost=Decimal("0.000105"),
    )


class FakeGateway:
    default_model = "claude-sonnet-4-20250514"

    def __init__(self, fail=(), crash=()):
        self.fail = set(fail)
        self.crash = set(crash)
        self.calls = []

    async def complete(self, account, payload, log_context=None):
        self.calls.append((payload, log_context))
        if log_context.content_type in self.fail:
            raise ProviderError("Overloaded")
        if log_context.content_type in self.crash:
            raise RuntimeError("unexpected")
        return GatewayResult(text=RESPONSES[log_context.content_type], usage=_usage())


def _run(service, account, source, types, **kwargs):
    return asyncio.run(service.run(account, source.id, source.transcript_text, types, **kwargs))


def _saved(session_factory, generation_id):
    db = session_factory()
    try:
        return db.query(GeneratedContent).filter(GeneratedContent.generation_id == generation_id).all()
    finally:
        db.close()


def test_unique_types_keeps_first_occurrence():
    assert unique_types(["blog_post", ContentType.LINKEDIN_POST, "blog_post"]) == [
        ContentType.BLOG_POST,
        ContentType.LINKEDIN_POST,
    ]


def test_unique_types_rejects_unknown():
    with pytest.raises(ValueError):
        unique_types(["podcast_script"])


def test_failed_type_is_isolated(session_factory, settings, account, source):
    gateway = FakeGateway(fail={"email_sequence"})
    service = GenerationService(gateway, session_factory, settings=settings)

    outcome = _run(service, account, source, ["linkedin_post", "email_sequence", "blog_post"])

    assert outcome.generation.status == "complete"
    assert outcome.generation.completed_at is not None
    assert outcome.failed_types == [ContentType.EMAIL_SEQUENCE]
    assert len(outcome.usage) == 2
    saved = _saved(session_factory, outcome.generation.id)
    assert sorted({c.content_type for c in saved}) == ["blog_post", "linkedin_post"]
    assert len(saved) == 3
    assert all(c.revision_number == 0 and c.revision_of is None for c in saved)


def test_unexpected_error_is_isolated(session_factory, settings, account, source):
    service = GenerationService(FakeGateway(crash={"blog_post"}), session_factory, settings=settings)
    outcome = _run(service, account, source, ["blog_post", "executive_summary"])
    assert outcome.failed_types == [ContentType.BLOG_POST]
    assert [a.content_type for a in outcome.artifacts] == ["executive_summary"]


def test_all_types_fail_still_completes(session_factory, settings, account, source):
    service = GenerationService(FakeGateway(fail={"blog_post", "twitter_thread"}), session_factory, settings=settings)
    outcome = _run(service, account, source, ["blog_post", "twitter_thread"])

    assert outcome.generation.status == "complete"
    assert outcome.artifacts == []
    db = session_factory()
    try:
        generation = db.query(ContentGeneration).filter(ContentGeneration.id == outcome.generation.id).first()
        assert generation.status == "complete"
        assert generation.selected_types == ["blog_post", "twitter_thread"]
    finally:
        db.close()


def test_types_run_in_selection_order(session_factory, settings, account, source):
    gateway = FakeGateway()
    service = GenerationService(gateway, session_factory, settings=settings)
    _run(service, account, source, ["executive_summary", "twitter_thread", "executive_summary", "blog_post"])
    assert [ctx.content_type for _, ctx in gateway.calls] == ["executive_summary", "twitter_thread", "blog_post"]


def test_metadata_per_type(session_factory, settings, account, source):
    service = GenerationService(FakeGateway(), session_factory, settings=settings)
    outcome = _run(
        service, account, source, ["linkedin_post", "email_sequence", "twitter_thread"],
        linkedin_length=LinkedInLength.LONG,
    )
    by_type = {}
    for artifact in outcome.artifacts:
        by_type.setdefault(artifact.content_type, []).append(artifact)

    assert [a.content_metadata for a in by_type["linkedin_post"]] == [{"linkedin_length": "long"}] * 2
    emails = sorted(by_type["email_sequence"], key=lambda a: a.content_text)
    assert [a.content_metadata for a in emails] == [{"subject": "Hello"}, {"subject": "Again"}]
    assert [a.content_text for a in by_type["twitter_thread"]] == ["Hook", "Point", "Wrap"]
    assert by_type["twitter_thread"][0].content_metadata is None


def test_call_context_and_prompt(session_factory, settings, source, db):
    account = make_account(
        db,
        email="voice@example.com",
        brand_voice_profile="Plainspoken and warm.",
        target_audience="CFOs",
    )
    gateway = FakeGateway()
    service = GenerationService(gateway, session_factory, settings=settings)
    outcome = asyncio.run(service.run(account, source.id, "transcript", ["blog_post"], tone=ToneOverride.FORMAL))

    [(payload, ctx)] = gateway.calls
    assert ctx.operation == "content_generation"
    assert ctx.generation_id == outcome.generation.id
    assert payload["max_tokens"] == settings.generation_max_tokens
    assert payload["system"][0]["cache_control"] == {"type": "ephemeral"}
    assert "Plainspoken and warm." in payload["system"][0]["text"]
    user_prompt = payload["messages"][0]["content"]
    assert "Target audience: CFOs" in user_prompt
    assert "formal, executive-level tone" in user_prompt
    assert outcome.generation.tone_override == "formal"


def test_explicit_brand_voice_wins(session_factory, settings, account, source):
    gateway = FakeGateway()
    service = GenerationService(gateway, session_factory, settings=settings)
    _run(service, account, source, ["executive_summary"], brand_voice="Bold.")
    assert "Bold." in gateway.calls[0][0]["system"][0]["text"]


def test_through_real_gateway_logs_each_type(session_factory, settings, account, source):
    stub = ProviderStub(
        claude_response(RESPONSES["executive_summary"]),
        claude_response("not numbered at all"),
    )
    gateway = AiGateway(session_factory, settings=settings, http_client=stub.client())
    service = GenerationService(gateway, session_factory, settings=settings)

    outcome = _run(service, account, source, ["executive_summary", "twitter_thread"])

    rows = usage_rows(session_factory, account.id)
    assert [r.content_type for r in rows] == ["executive_summary", "twitter_thread"]
    assert {r.generation_id for r in rows} == {outcome.generation.id}
    assert {r.operation for r in rows} == {"content_generation"}
    assert [a.content_text for a in outcome.artifacts if a.content_type == "twitter_thread"] == ["not numbered at all"]
