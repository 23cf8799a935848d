from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from bookblend.schemas.user import UserSummary


class ShareRequest(BaseModel):
    user_id: str


class ShareResponse(BaseModel):
    share_url: str
    slug: Optional[str] = None
    user: Optional[UserSummary] = None
    created_at: datetime


class ShareResolveResponse(BaseModel):
    user_id: str
    slug: str
    user: UserSummary
    created_at: datetime
