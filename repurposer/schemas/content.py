from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from repurposer.schemas.ai import UsageOut
from repurposer.services.content_types import ContentType, LinkedInLength, ToneOverride


# ---- Sources ----

class SourceCreate(BaseModel):
    title: str = Field("", max_length=255)
    original_filename: str | None = None
    transcript_text: str = Field(..., min_length=1)


class SourceResponse(BaseModel):
    id: str
    title: str
    original_filename: str | None
    transcript_text: str
    created_at: datetime

    class Config:
        from_attributes = True


# ---- Generations ----

class GenerationCreate(BaseModel):
    content_source_id: str
    selected_types: list[ContentType] = Field(..., min_length=1)
    tone_override: ToneOverride | None = None
    linkedin_length: LinkedInLength = LinkedInLength.MEDIUM


class GenerationResponse(BaseModel):
    id: str
    content_source_id: str
    selected_types: list[str]
    tone_override: str | None
    status: str
    created_at: datetime
    completed_at: datetime | None

    class Config:
        from_attributes = True


class ContentOut(BaseModel):
    id: str
    generation_id: str
    content_source_id: str
    content_type: str
    content_text: str
    content_metadata: dict[str, Any] | None = None
    revision_of: str | None = None
    revision_number: int = 0
    is_archived: bool = False
    archived_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class GenerationResult(BaseModel):
    """Partial failure shows up as failed_types; the generation is still complete."""
    generation: GenerationResponse
    content: list[ContentOut]
    failed_types: list[str] = []
    usage: list[UsageOut] = []


class GenerationDetail(BaseModel):
    generation: GenerationResponse
    content: list[ContentOut]


# ---- Revisions ----

class RevisionCreate(BaseModel):
    content_text: str = Field(..., min_length=1)
    content_metadata: dict[str, Any] | None = None


class PolishRequest(BaseModel):
    guidance: str = Field("", max_length=4000)


class PolishResponse(BaseModel):
    original: ContentOut
    revision: ContentOut
    usage: UsageOut


class BulkArchiveRequest(BaseModel):
    ids: list[str] = Field(default_factory=list)
