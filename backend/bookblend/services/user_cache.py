"""
User cache: upserts Goodreads profiles and owns slug assignment.

Slugs are permanent. Once a row has one, later writes for the same id keep it
even if the display name changes. Reads fail open: a database error is
treated the same as a cache miss.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from bookblend.core.config import settings
from bookblend.core.errors import PersistenceFailure
from bookblend.core.identifiers import CanonicalId, UsernameId
from bookblend.core.slugs import allocate_slug, slugify
from bookblend.models import User, utcnow
from bookblend.schemas.user import GoodreadsProfile
from bookblend.services.bookblend_client import profile_from_payload

logger = logging.getLogger(__name__)

FALLBACK_SLUG = "reader"


def base_slug_for(profile: GoodreadsProfile) -> str:
    """Name-derived slug, falling back to the user id when the name has no usable characters."""
    return slugify(profile.name) or slugify(profile.id) or FALLBACK_SLUG


def cache_user(db: Session, profile: GoodreadsProfile) -> User:
    """
    Upsert a User row keyed by profile.id and return it.

    Existing slugs are reused unchanged; otherwise a fresh one is allocated.
    Allocation is retried up to SLUG_ALLOCATION_RETRIES times when the
    users.slug unique constraint rejects the write (two requests raced for
    the same slug).

    Raises:
        PersistenceFailure: the row could not be written.
    """
    attempts = max(1, settings.SLUG_ALLOCATION_RETRIES)

    for attempt in range(1, attempts + 1):
        try:
            # Always consult the store, stale or not, so the slug survives
            user = db.get(User, profile.id)
            slug = user.slug if user is not None and user.slug else None
            if slug is None:
                slug = allocate_slug(db, base_slug_for(profile))

            if user is None:
                user = User(id=profile.id)
                db.add(user)

            user.name = profile.name
            user.image_url = profile.image_url
            user.profile_url = profile.profile_url
            user.book_count = profile.book_count
            user.username = profile.username
            user.slug = slug
            user.updated_at = utcnow()

            db.commit()
            db.refresh(user)
            return user

        except IntegrityError as e:
            db.rollback()
            logger.warning(
                "[SLUG_CONFLICT] user_id=%s attempt=%d/%d error=%s",
                profile.id,
                attempt,
                attempts,
                e.orig if e.orig is not None else e,
            )
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceFailure(f"Failed to cache user {profile.id}: {e}") from e

    raise PersistenceFailure(
        f"Failed to cache user {profile.id}: slug still conflicting after {attempts} attempts"
    )


def get_cached_user(db: Session, user_id: str, now: Optional[datetime] = None) -> Optional[User]:
    """
    Return the cached row, or None when missing or older than USER_CACHE_TTL_HOURS.

    Stale rows stay in the table so cache_user can keep their slug.
    """
    try:
        user = db.get(User, user_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("get_cached_user failed for user_id=%s: %s", user_id, e)
        return None

    if user is None or _is_stale(user, now):
        return None

    return user


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """Most recently refreshed row carrying this Goodreads username, stale or not."""
    try:
        return (
            db.query(User)
            .filter(User.username == username)
            .order_by(User.updated_at.desc())
            .first()
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("get_user_by_username failed for username=%s: %s", username, e)
        return None


def find_cached_user(db: Session, user_id: CanonicalId, now: Optional[datetime] = None) -> Optional[User]:
    """get_cached_user for either kind of id; usernames match on User.username."""
    if isinstance(user_id, UsernameId):
        user = get_user_by_username(db, user_id.handle)
        if user is None or _is_stale(user, now):
            return None
        return user
    return get_cached_user(db, str(user_id), now=now)


def resolve_user_id(db: Session, client, user_id: CanonicalId) -> str:
    """
    Numeric Goodreads id for a canonical id.

    Numeric ids pass through. A username is looked up in the users table
    first and otherwise fetched from the upstream, which reports the numeric
    id; that profile is cached on the way (a failed write is only logged).
    """
    if not isinstance(user_id, UsernameId):
        return str(user_id)

    known = get_user_by_username(db, user_id.handle)
    if known is not None:
        return known.id

    profile = profile_from_payload(client.get_user(user_id), user_id)
    try:
        cache_user(db, profile)
    except PersistenceFailure as e:
        logger.warning("[CACHE_WRITE_FAILED] user_id=%s: %s", profile.id, e)
    return profile.id


def _is_stale(user: User, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return now - user.updated_at > timedelta(hours=settings.USER_CACHE_TTL_HOURS)


def get_user_by_slug(db: Session, slug: str) -> Optional[User]:
    """Exact slug lookup with no staleness filter (share links must keep working)."""
    try:
        return db.query(User).filter(User.slug == slug).one_or_none()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("get_user_by_slug failed for slug=%s: %s", slug, e)
        return None


def backfill_missing_slugs(db: Session) -> int:
    """Assign slugs to rows created before slugs existed. Returns the number updated."""
    updated = 0
    users = db.query(User).filter(User.slug.is_(None)).order_by(User.created_at.asc()).all()
    for user in users:
        profile = GoodreadsProfile(id=user.id, name=user.name)
        user.slug = allocate_slug(db, base_slug_for(profile))
        # Flush each one so the next allocation sees it
        db.flush()
        updated += 1
        logger.info("Backfilled slug user_id=%s slug=%s", user.id, user.slug)
    db.commit()
    return updated
