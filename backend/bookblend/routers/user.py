"""
Profile lookup: proxies the upstream /user endpoint and caches the profile.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

from bookblend.database import get_db
from bookblend.core.errors import PersistenceFailure
from bookblend.core.identifiers import validate_user_id
from bookblend.services.bookblend_client import BookBlendClient, get_bookblend_client, profile_from_payload
from bookblend.services.user_cache import cache_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["user"])

NO_STORE = {"Cache-Control": "no-store"}


@router.get("/user")
def get_user(
    user_id: Optional[str] = Query(None, description="Goodreads user ID, username, or profile URL"),
    db: Session = Depends(get_db),
    client: BookBlendClient = Depends(get_bookblend_client),
):
    """
    Look up a Goodreads profile and its friends list.

    The profile is cached (and given a share slug) on the way through. A cache
    write failure is logged and the upstream payload is returned without a slug.
    """
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id is required")

    canonical = validate_user_id(user_id)
    payload = client.get_user(canonical)
    profile = profile_from_payload(payload, canonical)

    slug = None
    try:
        slug = cache_user(db, profile).slug
    except PersistenceFailure as e:
        logger.warning("[CACHE_WRITE_FAILED] user_id=%s: %s", profile.id, e)

    payload["user"] = {**payload["user"], "slug": slug}
    payload.setdefault("friends", [])
    return JSONResponse(content=payload, headers=NO_STORE)
