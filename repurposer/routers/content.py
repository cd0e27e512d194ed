"""
Generation and revision endpoints:
- POST /api/generations — generate the selected content types from a source (partial failure tolerated)
- GET /api/generations/{id} — generation with its content
- /api/content/{id}/revisions, /polish, /original — revision history (lineage root + numbered revisions)
- /api/content/{id}/archive, /unarchive, /api/content/archive — soft delete
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from repurposer.auth import get_current_account
from repurposer.core.dependencies import get_gateway, get_session_factory
from repurposer.database import get_db
from repurposer.models.account import Account
from repurposer.repositories import content_repository
from repurposer.schemas.content import (
    BulkArchiveRequest,
    ContentOut,
    GenerationCreate,
    GenerationDetail,
    GenerationResult,
    PolishRequest,
    PolishResponse,
    RevisionCreate,
)
from repurposer.services.ai_gateway import AiGateway
from repurposer.services.errors import ContentNotFound, GatewayError, RevisionConflict
from repurposer.services.generation_service import GenerationService
from repurposer.services.rate_limiter import check_generation_limit
from repurposer.services.revision_service import PolishService, RevisionTracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["content"])


# ---------- Generations ----------


@router.post("/generations", response_model=GenerationResult, status_code=status.HTTP_201_CREATED)
async def create_generation(
    body: GenerationCreate,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
    gateway: AiGateway = Depends(get_gateway),
    session_factory=Depends(get_session_factory),
):
    """
    Generate every selected content type from the source, one type at a time.
    A type whose AI call fails is skipped and listed in failed_types; the generation
    is still marked complete. Monthly cap and current rate limits are checked first.
    """
    source = content_repository.get_source(db, body.content_source_id, account.id)
    if not source:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Source not found")

    allowed, err = check_generation_limit(db, account)
    if not allowed:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=err)

    try:
        await gateway.check_quota(account)
    except GatewayError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    service = GenerationService(gateway, session_factory)
    outcome = await service.run(
        account,
        source.id,
        source.transcript_text,
        body.selected_types,
        tone=body.tone_override,
        linkedin_length=body.linkedin_length,
    )
    return GenerationResult(
        generation=outcome.generation,
        content=outcome.artifacts,
        failed_types=[t.value for t in outcome.failed_types],
        usage=[u.to_dict() for u in outcome.usage],
    )


@router.get("/generations/{generation_id}", response_model=GenerationDetail)
def get_generation(
    generation_id: str,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
):
    generation = content_repository.get_generation(db, generation_id, account.id)
    if not generation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Generation not found")
    return GenerationDetail(
        generation=generation,
        content=content_repository.get_generated_content(db, generation_id),
    )


# ---------- Revisions ----------


@router.post("/content/{content_id}/revisions", response_model=ContentOut, status_code=status.HTTP_201_CREATED)
def create_revision(
    content_id: str,
    body: RevisionCreate,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
):
    """Save edited text as a new revision in the content's lineage."""
    try:
        return RevisionTracker().create_revision(
            db, content_id, body.content_text, body.content_metadata, account_id=account.id,
        )
    except ContentNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found") from e
    except RevisionConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


@router.get("/content/{content_id}/revisions", response_model=list[ContentOut])
def list_revisions(
    content_id: str,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
):
    """Lineage root plus all revisions, ordered by revision number."""
    try:
        return RevisionTracker().get_revisions(db, content_id, account.id)
    except ContentNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found") from e


@router.get("/content/{content_id}/original", response_model=ContentOut)
def get_original(
    content_id: str,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
):
    try:
        return RevisionTracker().get_original(db, content_id, account.id)
    except ContentNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found") from e


@router.post("/content/{content_id}/polish", response_model=PolishResponse, status_code=status.HTTP_201_CREATED)
async def polish_content(
    content_id: str,
    body: PolishRequest,
    account: Account = Depends(get_current_account),
    gateway: AiGateway = Depends(get_gateway),
    session_factory=Depends(get_session_factory),
):
    """Light-touch AI edit; the result is stored as a new revision."""
    service = PolishService(gateway, session_factory)
    try:
        outcome = await service.polish(account, content_id, body.guidance)
    except ContentNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found") from e
    except GatewayError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    except RevisionConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    return PolishResponse(original=outcome.original, revision=outcome.revision, usage=outcome.usage.to_dict())


# ---------- Archive (soft delete) ----------


def _set_archived_one(db: Session, content_id: str, account: Account, archived: bool):
    rows = content_repository.set_archived(db, [content_id], account.id, archived)
    if not rows:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")
    return rows[0]


@router.post("/content/archive", response_model=list[ContentOut])
def bulk_archive(
    body: BulkArchiveRequest,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
):
    return content_repository.set_archived(db, body.ids, account.id, True)


@router.post("/content/{content_id}/archive", response_model=ContentOut)
def archive_content(content_id: str, db: Session = Depends(get_db), account: Account = Depends(get_current_account)):
    return _set_archived_one(db, content_id, account, True)


@router.post("/content/{content_id}/unarchive", response_model=ContentOut)
def unarchive_content(content_id: str, db: Session = Depends(get_db), account: Account = Depends(get_current_account)):
    return _set_archived_one(db, content_id, account, False)
