"""
API usage log persistence. Append-only: rows are inserted once and never updated.
All operations are sync (run_in_executor from async services).
"""
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from repurposer.models.api_usage_log import ApiUsageLog
from repurposer.models.content_generation import ContentGeneration, GenerationStatus


def insert_usage_record(
    db: Session,
    account_id: str,
    model: str,
    *,
    operation: str = "unknown",
    content_type: str | None = None,
    generation_id: str | None = None,
    input_tokens: int = 0,
    output_tokens: int = 0,
    cache_creation_input_tokens: int = 0,
    cache_read_input_tokens: int = 0,
    estimated_cost: Decimal = Decimal("0"),
    request_time_ms: int = 0,
    status: str = "success",
    error_message: str | None = None,
) -> ApiUsageLog:
    entry = ApiUsageLog(
        account_id=account_id,
        generation_id=generation_id,
        model=model,
        operation=operation,
        content_type=content_type,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        cache_creation_input_tokens=cache_creation_input_tokens,
        cache_read_input_tokens=cache_read_input_tokens,
        estimated_cost=estimated_cost,
        request_time_ms=request_time_ms,
        status=status,
        error_message=error_message,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def count_since(db: Session, account_id: str, since: datetime) -> int:
    """Calls (success and error) logged for the account at or after `since`."""
    return db.query(func.count(ApiUsageLog.id)).filter(
        ApiUsageLog.account_id == account_id,
        ApiUsageLog.created_at >= since,
    ).scalar() or 0


def list_since(db: Session, account_id: str, since: datetime) -> list[ApiUsageLog]:
    return (
        db.query(ApiUsageLog)
        .filter(ApiUsageLog.account_id == account_id, ApiUsageLog.created_at >= since)
        .order_by(ApiUsageLog.created_at)
        .all()
    )


def count_completed_generations_since(db: Session, account_id: str, since: datetime) -> int:
    return db.query(func.count(ContentGeneration.id)).filter(
        ContentGeneration.account_id == account_id,
        ContentGeneration.status == GenerationStatus.COMPLETE.value,
        ContentGeneration.created_at >= since,
    ).scalar() or 0


class UsageRepository:
    """Thin wrapper for dependency injection; delegates to module functions."""

    @staticmethod
    def insert_usage_record(db: Session, account_id: str, model: str, **fields) -> ApiUsageLog:
        return insert_usage_record(db, account_id, model, **fields)

    @staticmethod
    def count_since(db: Session, account_id: str, since: datetime) -> int:
        return count_since(db, account_id, since)

    @staticmethod
    def list_since(db: Session, account_id: str, since: datetime) -> list[ApiUsageLog]:
        return list_since(db, account_id, since)

    @staticmethod
    def count_completed_generations_since(db: Session, account_id: str, since: datetime) -> int:
        return count_completed_generations_since(db, account_id, since)
