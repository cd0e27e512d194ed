"""
Multi-type content generation for one source document.
- Content types run strictly one after another (bounded burst against the gateway
  quota, stable usage-log order).
- A failed type is skipped; the generation still reaches "complete".
- Drafts from all surviving types are saved as originals (revision 0) in one batch.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from sqlalchemy.orm import Session

from repurposer.config import Settings, get_settings
from repurposer.models.account import Account
from repurposer.models.content_generation import ContentGeneration
from repurposer.models.generated_content import GeneratedContent
from repurposer.repositories.content_repository import ContentRepository
from repurposer.services.ai_gateway import AiGateway, LogContext, UsageReport, build_payload
from repurposer.services.content_types import (
    ArtifactDraft,
    ContentType,
    LinkedInLength,
    SocialMetadata,
    ToneOverride,
)
from repurposer.services.errors import GatewayError
from repurposer.services.prompt_builder import PromptOptions, build_prompts
from repurposer.services.response_parser import parse_response

logger = logging.getLogger(__name__)

GENERATION_OPERATION = "content_generation"


@dataclass
class TypeResult:
    content_type: ContentType
    drafts: list[ArtifactDraft]
    usage: UsageReport


@dataclass
class GenerationOutcome:
    generation: ContentGeneration
    artifacts: list[GeneratedContent] = field(default_factory=list)
    usage: list[UsageReport] = field(default_factory=list)
    failed_types: list[ContentType] = field(default_factory=list)


def unique_types(content_types: Iterable[ContentType | str]) -> list[ContentType]:
    """Ordered, de-duplicated content types."""
    seen: list[ContentType] = []
    for ct in content_types:
        ct = ContentType(ct)
        if ct not in seen:
            seen.append(ct)
    return seen


class GenerationService:
    def __init__(
        self,
        gateway: AiGateway,
        session_factory: Callable[[], Session],
        repository: ContentRepository | None = None,
        settings: Settings | None = None,
    ):
        self._gateway = gateway
        self._session_factory = session_factory
        self._repo = repository or ContentRepository()
        self._settings = settings or get_settings()

    async def _db(self, fn, *args):
        """Run one repository call on its own session in the default executor."""
        def _do():
            db = self._session_factory()
            try:
                return fn(db, *args)
            finally:
                db.close()

        return await asyncio.get_running_loop().run_in_executor(None, _do)

    async def generate_type(
        self,
        account: Account,
        generation_id: str,
        content_type: ContentType,
        source_text: str,
        brand_voice: str,
        options: PromptOptions,
    ) -> TypeResult:
        """One gateway call for one content type. Gateway failures propagate."""
        prompts = build_prompts(content_type, source_text, brand_voice, options)
        payload = build_payload(
            prompts.user,
            model=self._gateway.default_model,
            max_tokens=self._settings.generation_max_tokens,
            system_prompt=prompts.system,
            cache_system=True,
        )
        result = await self._gateway.complete(
            account,
            payload,
            LogContext(operation=GENERATION_OPERATION, content_type=content_type.value, generation_id=generation_id),
        )
        drafts = parse_response(content_type, result.text)
        if content_type == ContentType.LINKEDIN_POST:
            meta = SocialMetadata(length_tier=options.linkedin_length)
            drafts = [ArtifactDraft(text=d.text, metadata=meta) for d in drafts]
        return TypeResult(content_type=content_type, drafts=drafts, usage=result.usage)

    async def run(
        self,
        account: Account,
        source_id: str,
        source_text: str,
        content_types: Iterable[ContentType | str],
        *,
        brand_voice: str | None = None,
        tone: ToneOverride | None = None,
        linkedin_length: LinkedInLength = LinkedInLength.MEDIUM,
    ) -> GenerationOutcome:
        types = unique_types(content_types)
        generation = await self._db(
            self._repo.create_generation,
            source_id,
            account.id,
            [t.value for t in types],
            tone.value if tone else None,
        )
        logger.info("Generation %s started: %s", generation.id, ", ".join(t.value for t in types))

        brand_voice = brand_voice or account.brand_voice_profile or self._settings.default_brand_voice
        options = PromptOptions(
            tone=tone,
            target_audience=account.target_audience or "",
            words_to_avoid=account.words_to_avoid or "",
            linkedin_length=linkedin_length,
        )
        outcome = GenerationOutcome(generation=generation)
        items: list[dict] = []

        for content_type in types:
            try:
                result = await self.generate_type(
                    account, generation.id, content_type, source_text, brand_voice, options,
                )
            except GatewayError as e:
                logger.warning("Generation %s: %s skipped: %s", generation.id, content_type.value, e.message)
                outcome.failed_types.append(content_type)
                continue
            except Exception:
                logger.exception("Generation %s: %s failed", generation.id, content_type.value)
                outcome.failed_types.append(content_type)
                continue

            outcome.usage.append(result.usage)
            for draft in result.drafts:
                items.append({
                    "generation_id": generation.id,
                    "content_source_id": source_id,
                    "account_id": account.id,
                    "content_type": content_type.value,
                    "content_text": draft.text,
                    "content_metadata": draft.metadata_dict(),
                })

        if items:
            outcome.artifacts = await self._db(self._repo.save_generated_content, items)
        outcome.generation = await self._db(self._repo.complete_generation, generation.id)
        logger.info(
            "Generation %s complete: %d artifacts, %d failed types",
            generation.id, len(outcome.artifacts), len(outcome.failed_types),
        )
        return outcome
