"""Billing/quota subject. One account per user."""
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from repurposer.database import Base


class PlanTier(str, enum.Enum):
    FREE = "free"
    STARTER = "starter"
    PRO = "pro"
    ENTERPRISE = "enterprise"

    @classmethod
    def resolve(cls, value: str | None) -> "PlanTier":
        """Unset or unrecognized tiers fall back to FREE."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.FREE


class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True, index=True)
    plan_tier = Column(String(20), nullable=True, default=PlanTier.FREE.value)
    brand_voice_profile = Column(Text, nullable=True)
    target_audience = Column(Text, nullable=True)
    words_to_avoid = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="account")

    @property
    def plan(self) -> PlanTier:
        return PlanTier.resolve(self.plan_tier)
