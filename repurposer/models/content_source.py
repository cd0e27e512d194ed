"""Source document (transcript, article, notes) already extracted to plain text."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from repurposer.database import Base


class ContentSource(Base):
    __tablename__ = "content_sources"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False, default="")
    original_filename = Column(String(255), nullable=True)
    transcript_text = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
