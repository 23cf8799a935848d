"""
Blend endpoints: cached compatibility results between two Goodreads users.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

from bookblend.database import get_db
from bookblend.core.errors import NotFound
from bookblend.core.identifiers import validate_user_id
from bookblend.models import Blend
from bookblend.schemas.blend import BlendMeta
from bookblend.services.blend_cache import BlendResult, get_blend_by_id, get_or_create_blend, order_user_ids
from bookblend.services.bookblend_client import BookBlendClient, get_bookblend_client
from bookblend.services.user_cache import resolve_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blend", tags=["blend"])

NO_STORE = {"Cache-Control": "no-store"}


def _with_meta(blend_data: dict, meta: BlendMeta) -> dict:
    return {**blend_data, "_meta": jsonable_encoder(meta)}


def _meta_for(blend: Blend, cached: bool) -> BlendMeta:
    return BlendMeta(
        blend_id=str(blend.id),
        user1_id=blend.user1_id,
        user2_id=blend.user2_id,
        created_at=blend.created_at,
        cached=cached,
    )


@router.get("")
def get_blend(
    user_id1: Optional[str] = Query(None),
    user_id2: Optional[str] = Query(None),
    force_new: bool = Query(False, description="Skip the cache and recompute"),
    db: Session = Depends(get_db),
    client: BookBlendClient = Depends(get_bookblend_client),
):
    if not user_id1 or not user_id2:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id1 and user_id2 are required")

    canonical1 = validate_user_id(user_id1)
    canonical2 = validate_user_id(user_id2)

    # Usernames become numeric ids so one pair has one blend history
    id1 = resolve_user_id(db, client, canonical1)
    id2 = resolve_user_id(db, client, canonical2)
    if id1 == id2:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Pick two different users to blend")

    result: BlendResult = get_or_create_blend(db, client, id1, id2, force_new=force_new)

    if result.blend is not None:
        meta = _meta_for(result.blend, cached=result.cached)
    else:
        user1_id, user2_id = order_user_ids(id1, id2)
        meta = BlendMeta(user1_id=user1_id, user2_id=user2_id, cached=False)

    return JSONResponse(content=_with_meta(result.blend_data, meta), headers=NO_STORE)


@router.get("/{blend_id}")
def get_blend_by_blend_id(blend_id: str, db: Session = Depends(get_db)):
    blend = get_blend_by_id(db, blend_id)
    if blend is None:
        raise NotFound("Blend not found")

    return _with_meta(blend.blend_data, _meta_for(blend, cached=True))
