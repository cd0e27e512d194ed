"""Closed set of content types, their per-type constants, and typed artifact metadata."""
import enum
from dataclasses import dataclass


class ContentType(str, enum.Enum):
    LINKEDIN_POST = "linkedin_post"
    BLOG_POST = "blog_post"
    EMAIL_SEQUENCE = "email_sequence"
    TWITTER_THREAD = "twitter_thread"
    EXECUTIVE_SUMMARY = "executive_summary"


class ToneOverride(str, enum.Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    TECHNICAL = "technical"


class LinkedInLength(str, enum.Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


@dataclass(frozen=True)
class ContentTypeSpec:
    label: str          # used inside prompts
    item_count: int     # items requested from the model
    source_chars: int   # prefix of the source text embedded in the prompt


CONTENT_TYPE_SPECS: dict[ContentType, ContentTypeSpec] = {
    ContentType.LINKEDIN_POST: ContentTypeSpec("LinkedIn post", 5, 8000),
    ContentType.BLOG_POST: ContentTypeSpec("blog post", 1, 12000),
    ContentType.EMAIL_SEQUENCE: ContentTypeSpec("email", 5, 8000),
    ContentType.TWITTER_THREAD: ContentTypeSpec("Twitter thread", 1, 6000),
    ContentType.EXECUTIVE_SUMMARY: ContentTypeSpec("executive summary", 1, 10000),
}


# ---- Metadata (discriminated by content type) ----


@dataclass(frozen=True)
class EmailMetadata:
    subject: str

    def to_dict(self) -> dict:
        return {"subject": self.subject}


@dataclass(frozen=True)
class SocialMetadata:
    length_tier: LinkedInLength

    def to_dict(self) -> dict:
        return {"linkedin_length": self.length_tier.value}


ContentMetadata = EmailMetadata | SocialMetadata


@dataclass(frozen=True)
class ArtifactDraft:
    text: str
    metadata: ContentMetadata | None = None

    def metadata_dict(self) -> dict | None:
        return self.metadata.to_dict() if self.metadata is not None else None
