from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
import uuid
from datetime import datetime, timezone
import sqlalchemy as sa
from bookblend.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """
    Cached Goodreads profile.

    `id` is the canonical identifier as a string (digits for numeric ids).
    `slug` is assigned once and then never regenerated for the same id.
    """
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    image_url = Column(String, nullable=True)
    profile_url = Column(String, nullable=True)
    book_count = Column(Integer, nullable=True)
    username = Column(String, nullable=True)
    slug = Column(String, unique=True, index=True, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)


class ShareLink(Base):
    """Legacy share entry keyed by user id. New links use User.slug directly."""
    __tablename__ = "share_links"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String, ForeignKey("users.id"), unique=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=True)


class Blend(Base):
    """
    Append-only compatibility result for an unordered pair of users.
    Pairs are always stored with user1_id < user2_id.
    """
    __tablename__ = "blends"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user1_id = Column(String, nullable=False)
    user2_id = Column(String, nullable=False)
    blend_data = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        sa.Index("idx_blends_pair_created_at", "user1_id", "user2_id", "created_at"),
    )
