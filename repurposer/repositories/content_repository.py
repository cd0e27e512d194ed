"""
Persistence for sources, generations and generated content. DB is the source of truth.
All operations are sync (used from sync endpoints or run_in_executor from async).
Generated content is never deleted, only archived.
"""
from datetime import datetime

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from repurposer.models.content_generation import ContentGeneration, GenerationStatus
from repurposer.models.content_source import ContentSource
from repurposer.models.generated_content import GeneratedContent


# ---- Sources ----


def create_source(
    db: Session,
    account_id: str,
    transcript_text: str,
    *,
    title: str = "",
    original_filename: str | None = None,
) -> ContentSource:
    source = ContentSource(
        account_id=account_id,
        title=title,
        original_filename=original_filename,
        transcript_text=transcript_text,
    )
    db.add(source)
    db.commit()
    db.refresh(source)
    return source


def get_source(db: Session, source_id: str, account_id: str | None = None) -> ContentSource | None:
    q = db.query(ContentSource).filter(ContentSource.id == source_id)
    if account_id is not None:
        q = q.filter(ContentSource.account_id == account_id)
    return q.first()


def list_sources(db: Session, account_id: str) -> list[ContentSource]:
    return (
        db.query(ContentSource)
        .filter(ContentSource.account_id == account_id)
        .order_by(ContentSource.created_at.desc())
        .all()
    )


# ---- Generations ----


def create_generation(
    db: Session,
    source_id: str,
    account_id: str,
    selected_types: list[str],
    tone_override: str | None = None,
) -> ContentGeneration:
    generation = ContentGeneration(
        content_source_id=source_id,
        account_id=account_id,
        selected_types=list(selected_types),
        tone_override=tone_override,
        status=GenerationStatus.PROCESSING.value,
    )
    db.add(generation)
    db.commit()
    db.refresh(generation)
    return generation


def get_generation(db: Session, generation_id: str, account_id: str | None = None) -> ContentGeneration | None:
    q = db.query(ContentGeneration).filter(ContentGeneration.id == generation_id)
    if account_id is not None:
        q = q.filter(ContentGeneration.account_id == account_id)
    return q.first()


def complete_generation(db: Session, generation_id: str) -> ContentGeneration | None:
    generation = get_generation(db, generation_id)
    if generation is None:
        return None
    generation.status = GenerationStatus.COMPLETE.value
    generation.completed_at = datetime.utcnow()
    db.commit()
    db.refresh(generation)
    return generation


# ---- Generated content ----


def save_generated_content(db: Session, items: list[dict]) -> list[GeneratedContent]:
    """Batch insert originals (revision 0, no lineage parent) in one transaction."""
    rows = [GeneratedContent(revision_of=None, revision_number=0, **item) for item in items]
    if not rows:
        return []
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows


def get_generated_content(db: Session, generation_id: str) -> list[GeneratedContent]:
    return (
        db.query(GeneratedContent)
        .filter(GeneratedContent.generation_id == generation_id)
        .order_by(GeneratedContent.created_at)
        .all()
    )


def get_content_by_id(db: Session, content_id: str, account_id: str | None = None) -> GeneratedContent | None:
    q = db.query(GeneratedContent).filter(GeneratedContent.id == content_id)
    if account_id is not None:
        q = q.filter(GeneratedContent.account_id == account_id)
    return q.first()


def list_content_by_source(db: Session, source_id: str, account_id: str) -> list[GeneratedContent]:
    return (
        db.query(GeneratedContent)
        .filter(
            GeneratedContent.content_source_id == source_id,
            GeneratedContent.account_id == account_id,
            GeneratedContent.is_archived == False,  # noqa: E712
        )
        .order_by(GeneratedContent.created_at.desc())
        .all()
    )


def get_existing_content_types(db: Session, source_id: str, account_id: str) -> list[str]:
    rows = (
        db.query(GeneratedContent.content_type)
        .filter(GeneratedContent.content_source_id == source_id, GeneratedContent.account_id == account_id)
        .distinct()
        .all()
    )
    return sorted(r[0] for r in rows)


# ---- Lineage ----


def max_revision_number(db: Session, root_id: str) -> int:
    value = db.query(func.max(GeneratedContent.revision_number)).filter(
        or_(GeneratedContent.id == root_id, GeneratedContent.revision_of == root_id)
    ).scalar()
    return value or 0


def insert_revision(
    db: Session,
    original: GeneratedContent,
    content_text: str,
    content_metadata: dict | None,
    revision_number: int,
) -> GeneratedContent:
    """Insert and commit one revision row. Raises IntegrityError if the number is taken."""
    revision = GeneratedContent(
        generation_id=original.generation_id,
        content_source_id=original.content_source_id,
        account_id=original.account_id,
        content_type=original.content_type,
        content_text=content_text,
        content_metadata=content_metadata,
        revision_of=original.lineage_root_id,
        revision_number=revision_number,
    )
    db.add(revision)
    db.commit()
    db.refresh(revision)
    return revision


def get_lineage(db: Session, root_id: str) -> list[GeneratedContent]:
    """Root original plus all of its revisions, by revision number."""
    return (
        db.query(GeneratedContent)
        .filter(or_(GeneratedContent.id == root_id, GeneratedContent.revision_of == root_id))
        .order_by(GeneratedContent.revision_number)
        .all()
    )


# ---- Archive (soft delete) ----


def set_archived(db: Session, content_ids: list[str], account_id: str, archived: bool) -> list[GeneratedContent]:
    if not content_ids:
        return []
    rows = (
        db.query(GeneratedContent)
        .filter(GeneratedContent.id.in_(content_ids), GeneratedContent.account_id == account_id)
        .all()
    )
    now = datetime.utcnow()
    for row in rows:
        row.is_archived = archived
        row.archived_at = now if archived else None
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows


class ContentRepository:
    """Thin wrapper for dependency injection; delegates to module functions."""

    @staticmethod
    def get_source(db: Session, source_id: str, account_id: str | None = None) -> ContentSource | None:
        return get_source(db, source_id, account_id)

    @staticmethod
    def create_generation(
        db: Session, source_id: str, account_id: str, selected_types: list[str], tone_override: str | None = None
    ) -> ContentGeneration:
        return create_generation(db, source_id, account_id, selected_types, tone_override)

    @staticmethod
    def complete_generation(db: Session, generation_id: str) -> ContentGeneration | None:
        return complete_generation(db, generation_id)

    @staticmethod
    def save_generated_content(db: Session, items: list[dict]) -> list[GeneratedContent]:
        return save_generated_content(db, items)

    @staticmethod
    def get_content_by_id(db: Session, content_id: str, account_id: str | None = None) -> GeneratedContent | None:
        return get_content_by_id(db, content_id, account_id)

    @staticmethod
    def max_revision_number(db: Session, root_id: str) -> int:
        return max_revision_number(db, root_id)

    @staticmethod
    def insert_revision(
        db: Session, original: GeneratedContent, content_text: str, content_metadata: dict | None, revision_number: int
    ) -> GeneratedContent:
        return insert_revision(db, original, content_text, content_metadata, revision_number)

    @staticmethod
    def get_lineage(db: Session, root_id: str) -> list[GeneratedContent]:
        return get_lineage(db, root_id)
