"""Pydantic schemas for calendar subscription tokens."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class SyncTokenResponse(BaseModel):
    """Subscription token and the feed URL built from it."""
    token: str
    feed_url: str
    created_at: Optional[datetime] = None
