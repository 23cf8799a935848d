"""
Share-link endpoints used by the public /share/<slug> pages.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from bookblend.database import get_db
from bookblend.core.errors import NotFound, PersistenceFailure
from bookblend.core.identifiers import UsernameId, validate_user_id
from bookblend.schemas.share import ShareRequest, ShareResolveResponse, ShareResponse
from bookblend.schemas.user import UserSummary
from bookblend.services.share_service import build_share_url, create_share_link, get_share_link, resolve_share
from bookblend.services.user_cache import find_cached_user, get_cached_user, get_user_by_username

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/share", tags=["share"])


@router.post("", response_model=ShareResponse)
def post_share(request: ShareRequest, db: Session = Depends(get_db)):
    """Create (or return) the share link for a user that was looked up recently."""
    user = find_cached_user(db, validate_user_id(request.user_id))
    if user is None:
        raise NotFound("User not found. Please look up the user first.")
    user_id = user.id

    try:
        share_link = create_share_link(db, user_id)
    except PersistenceFailure as e:
        logger.error("Failed to create share link for user_id=%s: %s", user_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create share link",
        )

    return ShareResponse(
        share_url=build_share_url(user, user_id),
        slug=user.slug,
        user=UserSummary.model_validate(user),
        created_at=share_link.created_at,
    )


@router.get("", response_model=ShareResponse)
def get_share(user_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id is required")

    canonical = validate_user_id(user_id)
    if isinstance(canonical, UsernameId):
        known = get_user_by_username(db, canonical.handle)
        if known is None:
            raise NotFound("Share link not found")
        user_id = known.id
    else:
        user_id = str(canonical)

    share_link = get_share_link(db, user_id)
    if share_link is None:
        raise NotFound("Share link not found")

    # May be stale; the link itself still exists
    user = get_cached_user(db, user_id)

    return ShareResponse(
        share_url=build_share_url(user, user_id),
        slug=user.slug if user else None,
        user=UserSummary.model_validate(user) if user else None,
        created_at=share_link.created_at,
    )


@router.get("/resolve", response_model=ShareResolveResponse)
def resolve_share_slug(slug: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Everything the share page needs for a slug, in one call."""
    if not slug:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="slug is required")

    resolved = resolve_share(db, slug)
    if resolved is None:
        raise NotFound("Share link not found")

    user = resolved["user"]
    return ShareResolveResponse(
        user_id=user.id,
        slug=user.slug,
        user=UserSummary.model_validate(user),
        created_at=user.created_at,
    )
