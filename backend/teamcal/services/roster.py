"""Roster lookups: which teams a user sees and whether they manage them."""
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamcal.models.team import Team, TeamMembership, AccessType

logger = logging.getLogger(__name__)

# Fallback colors for the "All Teams" view, assigned in discovery order
TEAM_COLORS = [
    "#8b5cf6",  # Purple
    "#10b981",  # Green
    "#f59e0b",  # Amber
    "#3b82f6",  # Blue
    "#ef4444",  # Red
    "#ec4899",  # Pink
    "#14b8a6",  # Teal
    "#f97316",  # Orange
]


@dataclass(frozen=True)
class CallerContext:
    """Identity of the user issuing a command, resolved by the auth layer."""
    user_id: uuid.UUID


@dataclass
class TeamAccess:
    """A team as one particular user sees it."""
    id: uuid.UUID
    name: str
    color: str
    access_type: AccessType
    organization_id: Optional[uuid.UUID] = None
    organization_name: Optional[str] = None
    staff_role: Optional[str] = None
    player_id: Optional[uuid.UUID] = None
    player_name: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return self.access_type == AccessType.STAFF


class RosterProvider(Protocol):
    """Contract for the roster collaborator."""

    async def teams_for_user(self, user_id: uuid.UUID) -> List[TeamAccess]:
        """Teams the user belongs to, staff access first, each team once."""
        ...

    async def is_staff(self, user_id: uuid.UUID, team_id: uuid.UUID) -> bool:
        """True when the user has a staff-type relationship to the team."""
        ...


class DatabaseRoster:
    """RosterProvider backed by the teams / team_memberships tables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def teams_for_user(self, user_id: uuid.UUID) -> List[TeamAccess]:
        result = await self.session.execute(
            select(TeamMembership, Team)
            .join(Team, Team.id == TeamMembership.team_id)
            .where(TeamMembership.user_id == user_id)
            .order_by(Team.name.asc())
        )
        rows = result.all()

        # Staff access wins over parent access on the same team
        rows.sort(key=lambda row: 0 if row.TeamMembership.is_staff else 1)

        teams: Dict[uuid.UUID, TeamAccess] = {}
        color_index = 0
        for membership, team in rows:
            if team.id in teams:
                continue

            color = team.color
            if not color:
                color = TEAM_COLORS[color_index % len(TEAM_COLORS)]
                color_index += 1

            teams[team.id] = TeamAccess(
                id=team.id,
                name=team.name,
                color=color,
                access_type=AccessType(membership.access_type),
                organization_id=team.organization_id,
                organization_name=team.organization_name,
                staff_role=membership.staff_role,
                player_id=membership.player_id,
                player_name=membership.player_name,
            )

        return list(teams.values())

    async def is_staff(self, user_id: uuid.UUID, team_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            select(TeamMembership.id)
            .where(
                TeamMembership.user_id == user_id,
                TeamMembership.team_id == team_id,
                TeamMembership.access_type == AccessType.STAFF.value,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def get_team(self, team_id: uuid.UUID) -> Optional[Team]:
        result = await self.session.execute(select(Team).where(Team.id == team_id))
        return result.scalar_one_or_none()

    async def member_user_ids(self, team_id: uuid.UUID) -> List[uuid.UUID]:
        """Distinct users on a team, staff and parents alike."""
        result = await self.session.execute(
            select(TeamMembership.user_id)
            .where(TeamMembership.team_id == team_id)
            .distinct()
        )
        return list(result.scalars().all())
