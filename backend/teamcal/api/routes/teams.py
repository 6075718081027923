"""Team API routes."""
from fastapi import APIRouter, Depends

from teamcal.api.utils.dependencies import get_team_aggregator
from teamcal.dependencies import get_current_caller
from teamcal.schemas.team import TeamListResponse, TeamResponse
from teamcal.services.roster import CallerContext
from teamcal.services.team_aggregator import ALL_TEAMS, TeamAggregator

router = APIRouter(prefix="/api/teams", tags=["Teams"])


@router.get("/mine", response_model=TeamListResponse)
async def list_my_teams(
    caller: CallerContext = Depends(get_current_caller),
    aggregator: TeamAggregator = Depends(get_team_aggregator)
):
    """Teams the caller belongs to, staff teams first, each with its display color."""
    teams = await aggregator.resolve_scope(caller, ALL_TEAMS)
    items = [
        TeamResponse(
            id=team.id,
            name=team.name,
            color=team.color,
            access_type=team.access_type.value,
            organization_id=team.organization_id,
            organization_name=team.organization_name,
            staff_role=team.staff_role,
            player_id=team.player_id,
            player_name=team.player_name,
            can_manage=team.is_staff,
        )
        for team in teams
    ]
    return TeamListResponse(items=items, total=len(items))
