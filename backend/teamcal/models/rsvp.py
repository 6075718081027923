"""RSVP model."""
import enum
import uuid
from sqlalchemy import (
    Column, String, TIMESTAMP, Text, Uuid,
    ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.sql import func

from teamcal.database import Base
from teamcal.models.base import utc_now


class RSVPStatus(str, enum.Enum):
    """
    A user's attendance response.

    PENDING may move to any answer, and YES/NO/MAYBE may move between
    each other freely. Once answered, an RSVP never returns to PENDING.
    """
    YES = "yes"
    NO = "no"
    MAYBE = "maybe"
    PENDING = "pending"


class EventRSVP(Base):
    """One user's response to one event."""
    __tablename__ = "cal_event_rsvps"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    event_id = Column(
        Uuid,
        ForeignKey('cal_events.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    user_id = Column(Uuid, nullable=False, index=True)
    player_id = Column(Uuid, nullable=True)  # Parent responding for a child

    status = Column(String(10), nullable=False, default=RSVPStatus.PENDING.value)
    decline_reason = Column(Text, nullable=True)  # Only kept while status is "no"

    responded_at = Column(TIMESTAMP(timezone=True), nullable=True)
    updated_at = Column(
        TIMESTAMP(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint('event_id', 'user_id', name='uq_rsvp_event_user'),
        Index('idx_rsvp_event_status', 'event_id', 'status'),
    )

    @property
    def is_declined(self) -> bool:
        return self.status == RSVPStatus.NO.value

    def __repr__(self):
        return (
            f"<EventRSVP(event_id={self.event_id}, user_id={self.user_id}, "
            f"status={self.status})>"
        )
