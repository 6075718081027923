"""Calendar event model."""
import enum
import uuid
from sqlalchemy import (
    Column, String, Boolean, TIMESTAMP, Date, Time, Text, Uuid,
    ForeignKey, Index
)
from sqlalchemy.sql import func

from teamcal.database import Base
from teamcal.models.base import utc_now


class EventType(str, enum.Enum):
    """Kind of scheduled occurrence."""
    GAME = "game"
    SCRIMMAGE = "scrimmage"
    PRACTICE = "practice"
    OTHER = "other_event"
    CLUB = "club_event"

    @property
    def has_opponent(self) -> bool:
        """Games and scrimmages are played against an opponent."""
        return self in (EventType.GAME, EventType.SCRIMMAGE)


class HomeAway(str, enum.Enum):
    """Venue designation for games and scrimmages."""
    HOME = "home"
    AWAY = "away"
    NEUTRAL = "neutral"


class Event(Base):
    """
    One scheduled occurrence belonging to a team.

    Events created together from a recurring command share a
    recurrence_group_id; the group itself is never stored.
    Cancelling only flips is_cancelled, the row and its RSVPs stay.
    """
    __tablename__ = "cal_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Ownership
    team_id = Column(
        Uuid,
        ForeignKey('teams.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    organization_id = Column(Uuid, nullable=True, index=True)
    created_by = Column(Uuid, nullable=False)

    # What
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_type = Column(String(20), nullable=False, default=EventType.PRACTICE.value)

    # When (local calendar date and times, no time zone)
    event_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    arrival_time = Column(Time, nullable=True)
    is_all_day = Column(Boolean, default=False, nullable=False)

    # Where
    location_name = Column(String(255), nullable=True)
    location_address = Column(String(500), nullable=True)

    # Game details
    opponent = Column(String(255), nullable=True)
    home_away = Column(String(10), nullable=True)
    uniform = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # Cancellation
    is_cancelled = Column(Boolean, default=False, nullable=False)
    cancelled_reason = Column(Text, nullable=True)

    # Recurrence
    recurrence_group_id = Column(Uuid, nullable=True, index=True)
    recurrence_pattern = Column(String(50), nullable=True)  # e.g. "M,W"

    # Timestamps
    created_at = Column(TIMESTAMP(timezone=True), default=utc_now, server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now
    )

    __table_args__ = (
        Index('idx_cal_events_team_date', 'team_id', 'event_date'),
        Index('idx_cal_events_group_date', 'recurrence_group_id', 'event_date'),
    )

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_group_id is not None

    def __repr__(self):
        return (
            f"<Event(id={self.id}, team_id={self.team_id}, title={self.title}, "
            f"event_date={self.event_date}, is_cancelled={self.is_cancelled})>"
        )
