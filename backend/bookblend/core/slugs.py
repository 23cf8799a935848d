"""
Share-link slugs: derive a URL-safe slug from a display name and make it
unique among users.
"""
import logging
import re
import uuid

from sqlalchemy.orm import Session

from bookblend.core.config import settings
from bookblend.models import User

logger = logging.getLogger(__name__)

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify(name: str) -> str:
    """
    "Mark O'Connell" -> "mark-oconnell", "  Mary   Jane  " -> "mary-jane".

    Returns "" when nothing usable is left (all punctuation or emoji).
    """
    slug = _DISALLOWED.sub("", (name or "").lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def slug_exists(db: Session, slug: str) -> bool:
    return db.query(User.id).filter(User.slug == slug).first() is not None


def allocate_slug(db: Session, base_slug: str, max_suffix: int | None = None) -> str:
    """
    Return `base_slug` if unused, else the first free `base_slug-N` (N = 1, 2, ...).

    The scan is bounded by SLUG_MAX_SUFFIX; past that a random suffix is used.
    This is check-then-act: the users.slug unique constraint catches races and
    the caller retries allocation on IntegrityError.
    """
    if not base_slug:
        raise ValueError("base_slug must be non-empty")

    if max_suffix is None:
        max_suffix = settings.SLUG_MAX_SUFFIX

    if not slug_exists(db, base_slug):
        return base_slug

    for suffix in range(1, max_suffix + 1):
        candidate = f"{base_slug}-{suffix}"
        if not slug_exists(db, candidate):
            return candidate

    candidate = f"{base_slug}-{uuid.uuid4().hex[:8]}"
    logger.warning(
        "[SLUG_CONFLICT] base_slug=%s exhausted %d suffixes, using %s",
        base_slug,
        max_suffix,
        candidate,
    )
    return candidate
