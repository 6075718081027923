"""Pydantic schemas for roster teams."""
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel


class TeamResponse(BaseModel):
    """A team as the caller sees it."""
    id: UUID
    name: str
    color: str
    access_type: str
    organization_id: Optional[UUID] = None
    organization_name: Optional[str] = None
    staff_role: Optional[str] = None
    player_id: Optional[UUID] = None
    player_name: Optional[str] = None
    can_manage: bool = False

    model_config = {
        "from_attributes": True
    }


class TeamListResponse(BaseModel):
    items: List[TeamResponse]
    total: int
