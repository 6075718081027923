"""Team and roster membership models."""
import enum
import uuid
from sqlalchemy import Column, String, TIMESTAMP, Uuid, ForeignKey, Index, UniqueConstraint
from sqlalchemy.sql import func

from teamcal.database import Base
from teamcal.models.base import utc_now


class AccessType(str, enum.Enum):
    """How a user reaches a team."""
    STAFF = "staff"    # head coach, assistant coach, team manager
    PARENT = "parent"  # guardian of a rostered player


class Team(Base):
    """A team inside an organization (club)."""
    __tablename__ = "teams"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    age_group = Column(String(50), nullable=True)
    organization_id = Column(Uuid, nullable=True, index=True)
    organization_name = Column(String(255), nullable=True)
    color = Column(String(20), nullable=True)  # e.g. "#8b5cf6"

    created_at = Column(TIMESTAMP(timezone=True), default=utc_now, server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now
    )

    def __repr__(self):
        return f"<Team(id={self.id}, name={self.name})>"


class TeamMembership(Base):
    """
    Links a user to a team.

    Staff rows carry a staff_role; parent rows carry the player the
    parent responds for.
    """
    __tablename__ = "team_memberships"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    team_id = Column(
        Uuid,
        ForeignKey('teams.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    user_id = Column(Uuid, nullable=False, index=True)
    access_type = Column(String(20), nullable=False)
    staff_role = Column(String(50), nullable=True)
    player_id = Column(Uuid, nullable=True)
    player_name = Column(String(255), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), default=utc_now, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('team_id', 'user_id', 'player_id', name='uq_team_member_player'),
        Index('idx_membership_user_team', 'user_id', 'team_id'),
    )

    @property
    def is_staff(self) -> bool:
        return self.access_type == AccessType.STAFF.value

    def __repr__(self):
        return (
            f"<TeamMembership(team_id={self.team_id}, user_id={self.user_id}, "
            f"access_type={self.access_type})>"
        )
