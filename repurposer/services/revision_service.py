"""
Revision history for generated content.
Revisions always point at the lineage root and get the next free number in that
lineage. The number is taken with insert-then-retry against the unique
(revision_of, revision_number) constraint, so concurrent revisions never collide.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from repurposer.config import Settings, get_settings
from repurposer.models.account import Account
from repurposer.models.generated_content import GeneratedContent
from repurposer.repositories.content_repository import ContentRepository
from repurposer.services.ai_gateway import AiGateway, LogContext, UsageReport, build_payload
from repurposer.services.errors import ContentNotFound, ProviderError, RevisionConflict
from repurposer.services.prompt_builder import REVISE_SYSTEM_PROMPT, build_revise_prompt

logger = logging.getLogger(__name__)

MAX_REVISION_ATTEMPTS = 5
REVISION_OPERATION = "content_revision"


class RevisionTracker:
    def __init__(self, repository: ContentRepository | None = None):
        self._repo = repository or ContentRepository()

    def get_content(self, db: Session, content_id: str, account_id: str | None = None) -> GeneratedContent:
        content = self._repo.get_content_by_id(db, content_id, account_id)
        if content is None:
            raise ContentNotFound(content_id)
        return content

    def create_revision(
        self,
        db: Session,
        content_id: str,
        content_text: str,
        content_metadata: dict | None = None,
        account_id: str | None = None,
    ) -> GeneratedContent:
        """New immutable revision of `content_id`. Metadata defaults to the original's."""
        original = self.get_content(db, content_id, account_id)
        root_id = original.lineage_root_id
        metadata = content_metadata if content_metadata is not None else original.content_metadata
        for attempt in range(1, MAX_REVISION_ATTEMPTS + 1):
            number = self._repo.max_revision_number(db, root_id) + 1
            try:
                return self._repo.insert_revision(db, original, content_text, metadata, number)
            except IntegrityError:
                db.rollback()
                logger.info("Revision %d of %s taken (attempt %d), retrying", number, root_id, attempt)
        raise RevisionConflict(f"Could not allocate a revision number for {root_id}")

    def get_revisions(self, db: Session, content_id: str, account_id: str | None = None) -> list[GeneratedContent]:
        content = self.get_content(db, content_id, account_id)
        return self._repo.get_lineage(db, content.lineage_root_id)

    def get_original(self, db: Session, content_id: str, account_id: str | None = None) -> GeneratedContent:
        content = self.get_content(db, content_id, account_id)
        if content.revision_of is None:
            return content
        return self.get_content(db, content.revision_of, account_id)


@dataclass
class PolishOutcome:
    original: GeneratedContent
    revision: GeneratedContent
    usage: UsageReport


class PolishService:
    """AI light-touch edit of an artifact, saved as a new revision."""

    def __init__(
        self,
        gateway: AiGateway,
        session_factory: Callable[[], Session],
        tracker: RevisionTracker | None = None,
        settings: Settings | None = None,
    ):
        self._gateway = gateway
        self._session_factory = session_factory
        self._tracker = tracker or RevisionTracker()
        self._settings = settings or get_settings()

    def _with_session(self, fn, *args):
        db = self._session_factory()
        try:
            return fn(db, *args)
        finally:
            db.close()

    async def polish(self, account: Account, content_id: str, guidance: str = "") -> PolishOutcome:
        loop = asyncio.get_running_loop()
        original = await loop.run_in_executor(
            None, self._with_session, self._tracker.get_content, content_id, account.id,
        )
        brand_voice = account.brand_voice_profile or self._settings.default_brand_voice
        payload = build_payload(
            build_revise_prompt(original.content_type, brand_voice, original.content_text, guidance),
            model=self._gateway.default_model,
            max_tokens=self._settings.generation_max_tokens,
            system_prompt=REVISE_SYSTEM_PROMPT,
            cache_system=True,
        )
        result = await self._gateway.complete(
            account,
            payload,
            LogContext(
                operation=REVISION_OPERATION,
                content_type=original.content_type,
                generation_id=original.generation_id,
            ),
        )
        polished = result.text.strip()
        if not polished:
            raise ProviderError("Empty response")
        revision = await loop.run_in_executor(
            None, self._with_session, self._tracker.create_revision, content_id, polished, None, account.id,
        )
        return PolishOutcome(original=original, revision=revision, usage=result.usage)
