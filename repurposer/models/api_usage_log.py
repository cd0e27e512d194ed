"""Append-only log of LLM calls. Source of truth for quota counting and cost reporting."""
import uuid
import enum
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, Text, Index
from repurposer.database import Base


class UsageStatus(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"


class ApiUsageLog(Base):
    __tablename__ = "api_usage_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    generation_id = Column(String(36), ForeignKey("content_generations.id"), nullable=True, index=True)
    model = Column(String(100), nullable=False)
    operation = Column(String(64), nullable=False, default="unknown")
    content_type = Column(String(32), nullable=True)
    input_tokens = Column(Integer, nullable=False, default=0)
    output_tokens = Column(Integer, nullable=False, default=0)
    cache_creation_input_tokens = Column(Integer, nullable=False, default=0)
    cache_read_input_tokens = Column(Integer, nullable=False, default=0)
    estimated_cost = Column(Numeric(18, 10), nullable=False, default=Decimal("0"))
    request_time_ms = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default=UsageStatus.SUCCESS.value)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (Index("ix_api_usage_logs_account_created", "account_id", "created_at"),)
