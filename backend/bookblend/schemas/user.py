from pydantic import BaseModel, field_validator
from typing import Optional


class GoodreadsProfile(BaseModel):
    """The `user` object returned by the upstream /user endpoint."""
    id: str
    name: str
    image_url: Optional[str] = None
    profile_url: Optional[str] = None
    book_count: Optional[int] = None
    username: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        # Upstream sends ids as strings but numbers slip through occasionally
        return str(value) if value is not None else value

    @field_validator("book_count", mode="before")
    @classmethod
    def parse_book_count(cls, value):
        # Upstream sends counts as strings ("142")
        if value in (None, ""):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @field_validator("username", mode="before")
    @classmethod
    def empty_username_is_none(cls, value):
        return value or None


class UserSummary(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None
    profile_url: Optional[str] = None

    class Config:
        from_attributes = True
