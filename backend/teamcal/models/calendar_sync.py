"""Calendar subscription token model."""
import uuid
from sqlalchemy import Column, String, Boolean, TIMESTAMP, Uuid, Index
from sqlalchemy.sql import func

from teamcal.database import Base
from teamcal.models.base import utc_now


class CalendarSyncToken(Base):
    """Opaque token that lets an external calendar app pull a user's feed."""
    __tablename__ = "calendar_sync_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), default=utc_now, server_default=func.now())

    __table_args__ = (
        Index('idx_sync_token_user_active', 'user_id', 'is_active'),
    )

    def __repr__(self):
        return f"<CalendarSyncToken(user_id={self.user_id}, is_active={self.is_active})>"
