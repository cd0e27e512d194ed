"""Generated (or revised) content artifact.

Lineage: an original has revision_of = NULL and revision_number = 0. Every revision
points at the root original (never at an intermediate revision) and carries a
number unique within that lineage.
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint
from repurposer.database import Base


class GeneratedContent(Base):
    __tablename__ = "generated_content"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    generation_id = Column(String(36), ForeignKey("content_generations.id"), nullable=False, index=True)
    content_source_id = Column(String(36), ForeignKey("content_sources.id"), nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    content_type = Column(String(32), nullable=False, index=True)
    content_text = Column(Text, nullable=False)
    content_metadata = Column(JSON, nullable=True)  # {"subject": ...} | {"linkedin_length": ...}
    revision_of = Column(String(36), ForeignKey("generated_content.id"), nullable=True, index=True)
    revision_number = Column(Integer, nullable=False, default=0)
    is_archived = Column(Boolean, nullable=False, default=False)
    archived_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("revision_of", "revision_number", name="uq_generated_content_lineage_revision"),
    )

    @property
    def lineage_root_id(self) -> str:
        return self.revision_of or self.id
