"""FastAPI dependencies for caller identity and team permission checks."""
import logging
import uuid
from typing import Optional
from fastapi import Header
from sqlalchemy.exc import SQLAlchemyError

from teamcal.api.exceptions import forbidden, unauthorized
from teamcal.services.errors import StorageError
from teamcal.services.roster import CallerContext, RosterProvider

logger = logging.getLogger(__name__)


async def get_current_caller(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id")
) -> CallerContext:
    """
    Resolve the calling user.

    Authentication happens in front of this service; the gateway forwards
    the authenticated user id in the X-User-Id header.

    Raises:
        HTTPException: If the header is missing or not a UUID
    """
    if not x_user_id:
        raise unauthorized("Not authenticated")
    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise unauthorized("Invalid user identity")
    return CallerContext(user_id=user_id)


async def require_team_staff(
    roster: RosterProvider,
    caller: CallerContext,
    team_id: uuid.UUID
) -> None:
    """Raise 403 unless the caller is staff on the team."""
    try:
        is_staff = await roster.is_staff(caller.user_id, team_id)
    except SQLAlchemyError as e:
        logger.error(f"Staff check for user {caller.user_id} failed: {e}")
        raise StorageError(str(e)) from e
    if not is_staff:
        raise forbidden("Only team staff can manage events")


async def require_team_member(
    roster: RosterProvider,
    caller: CallerContext,
    team_id: uuid.UUID
) -> None:
    """Raise 403 unless the caller has any relationship to the team."""
    try:
        teams = await roster.teams_for_user(caller.user_id)
    except SQLAlchemyError as e:
        logger.error(f"Membership check for user {caller.user_id} failed: {e}")
        raise StorageError(str(e)) from e
    if not any(team.id == team_id for team in teams):
        raise forbidden("Not a member of this team")
