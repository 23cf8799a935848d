from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class BlendMeta(BaseModel):
    """Attached to every blend payload as `_meta`."""
    blend_id: Optional[str] = None
    user1_id: str
    user2_id: str
    created_at: Optional[datetime] = None
    cached: bool = False
