"""
Share links.

Public share URLs use User.slug. The share_links table is the older form,
keyed by user id; it's still written so existing links keep resolving.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from bookblend.core.config import settings
from bookblend.core.errors import PersistenceFailure
from bookblend.models import ShareLink, User
from bookblend.services.user_cache import get_user_by_slug

logger = logging.getLogger(__name__)


def build_share_url(user: Optional[User], user_id: str) -> str:
    key = user.slug if user is not None and user.slug else user_id
    return f"{settings.SITE_URL}/share/{key}"


def resolve_share(db: Session, slug: str) -> Optional[dict]:
    """Map a public slug to `{"user": User}`; None means render a 404."""
    user = get_user_by_slug(db, slug)
    if user is None:
        return None
    return {"user": user}


def get_share_link(db: Session, user_id: str) -> Optional[ShareLink]:
    try:
        return db.query(ShareLink).filter(ShareLink.user_id == user_id).one_or_none()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("get_share_link failed for user_id=%s: %s", user_id, e)
        return None


def create_share_link(db: Session, user_id: str) -> ShareLink:
    """
    Return the share link for user_id, creating it on first call.

    Raises:
        PersistenceFailure: the insert was rejected for a reason other than
            a concurrent insert of the same link.
    """
    existing = get_share_link(db, user_id)
    if existing is not None:
        return existing

    share_link = ShareLink(user_id=user_id)
    try:
        db.add(share_link)
        db.commit()
        db.refresh(share_link)
        return share_link
    except IntegrityError as e:
        # Another request created it between the check and the insert
        db.rollback()
        existing = get_share_link(db, user_id)
        if existing is not None:
            return existing
        raise PersistenceFailure(f"Failed to create share link for {user_id}: {e}") from e
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceFailure(f"Failed to create share link for {user_id}: {e}") from e
