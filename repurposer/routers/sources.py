"""Source documents (already extracted text) and the content generated from them."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from repurposer.auth import get_current_account
from repurposer.database import get_db
from repurposer.models.account import Account
from repurposer.repositories import content_repository
from repurposer.schemas.content import ContentOut, SourceCreate, SourceResponse

router = APIRouter(prefix="/api/sources", tags=["sources"])


def _get_source_or_404(db: Session, source_id: str, account: Account):
    source = content_repository.get_source(db, source_id, account.id)
    if not source:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Source not found")
    return source


@router.post("", response_model=SourceResponse, status_code=status.HTTP_201_CREATED)
def create_source(
    body: SourceCreate,
    db: Session = Depends(get_db),
    account: Account = Depends(get_current_account),
):
    return content_repository.create_source(
        db, account.id, body.transcript_text,
        title=body.title,
        original_filename=body.original_filename,
    )


@router.get("", response_model=list[SourceResponse])
def list_sources(db: Session = Depends(get_db), account: Account = Depends(get_current_account)):
    return content_repository.list_sources(db, account.id)


@router.get("/{source_id}", response_model=SourceResponse)
def get_source(source_id: str, db: Session = Depends(get_db), account: Account = Depends(get_current_account)):
    return _get_source_or_404(db, source_id, account)


@router.get("/{source_id}/content", response_model=list[ContentOut])
def list_source_content(source_id: str, db: Session = Depends(get_db), account: Account = Depends(get_current_account)):
    """Non-archived content for the source, newest first."""
    _get_source_or_404(db, source_id, account)
    return content_repository.list_content_by_source(db, source_id, account.id)


@router.get("/{source_id}/content-types", response_model=list[str])
def existing_content_types(source_id: str, db: Session = Depends(get_db), account: Account = Depends(get_current_account)):
    """Content types already generated for the source."""
    _get_source_or_404(db, source_id, account)
    return content_repository.get_existing_content_types(db, source_id, account.id)
