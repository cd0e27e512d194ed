"""One "generate content from this source" action."""
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from repurposer.database import Base


class GenerationStatus(str, enum.Enum):
    PROCESSING = "processing"
    COMPLETE = "complete"


class ContentGeneration(Base):
    __tablename__ = "content_generations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    content_source_id = Column(String(36), ForeignKey("content_sources.id"), nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    selected_types = Column(JSON, nullable=False, default=list)  # ordered content type ids
    tone_override = Column(String(20), nullable=True)
    status = Column(String(20), nullable=False, default=GenerationStatus.PROCESSING.value)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    completed_at = Column(DateTime, nullable=True)
