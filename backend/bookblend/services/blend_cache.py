"""
Blend cache: append-only history of compatibility results per user pair.

Pairs are stored with user1_id < user2_id so lookups don't depend on the
order the caller passes ids in. "Latest" means newest created_at.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookblend.core.errors import PersistenceFailure
from bookblend.models import Blend
from bookblend.services.bookblend_client import BookBlendClient

logger = logging.getLogger(__name__)


def order_user_ids(user_id_a: str, user_id_b: str) -> Tuple[str, str]:
    return (user_id_a, user_id_b) if user_id_a < user_id_b else (user_id_b, user_id_a)


def get_latest_blend(db: Session, user_id_a: str, user_id_b: str) -> Optional[Blend]:
    user1_id, user2_id = order_user_ids(user_id_a, user_id_b)
    try:
        return (
            db.query(Blend)
            .filter(Blend.user1_id == user1_id, Blend.user2_id == user2_id)
            .order_by(Blend.created_at.desc())
            .first()
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("get_latest_blend failed for %s/%s: %s", user1_id, user2_id, e)
        return None


def save_blend(db: Session, user_id_a: str, user_id_b: str, blend_data: Dict[str, Any]) -> Blend:
    """
    Insert a new row (never updates in place) and return it.

    Raises:
        PersistenceFailure: the insert was rejected.
    """
    user1_id, user2_id = order_user_ids(user_id_a, user_id_b)
    blend = Blend(user1_id=user1_id, user2_id=user2_id, blend_data=blend_data)
    try:
        db.add(blend)
        db.commit()
        db.refresh(blend)
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceFailure(f"Failed to save blend for {user1_id}/{user2_id}: {e}") from e
    return blend


def get_blend_by_id(db: Session, blend_id: Union[str, uuid.UUID]) -> Optional[Blend]:
    """None for unknown ids and for strings that aren't UUIDs."""
    if not isinstance(blend_id, uuid.UUID):
        try:
            blend_id = uuid.UUID(str(blend_id))
        except ValueError:
            return None
    try:
        return db.get(Blend, blend_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("get_blend_by_id failed for %s: %s", blend_id, e)
        return None


@dataclass
class BlendResult:
    blend_data: Dict[str, Any]
    # None when the fresh result could not be persisted
    blend: Optional[Blend]
    cached: bool


def get_or_create_blend(
    db: Session,
    client: BookBlendClient,
    user_id_a: str,
    user_id_b: str,
    force_new: bool = False,
) -> BlendResult:
    """
    Return the latest stored blend for the pair, or compute and store a new one.

    force_new skips the lookup. Upstream errors propagate (UpstreamUnavailable);
    a failed insert still returns the freshly computed payload, uncached.
    """
    if not force_new:
        latest = get_latest_blend(db, user_id_a, user_id_b)
        if latest is not None:
            logger.info("Blend cache hit pair=%s/%s blend_id=%s", latest.user1_id, latest.user2_id, latest.id)
            return BlendResult(blend_data=latest.blend_data, blend=latest, cached=True)

    blend_data = client.get_blend(user_id_a, user_id_b)

    try:
        blend = save_blend(db, user_id_a, user_id_b, blend_data)
    except PersistenceFailure as e:
        logger.warning("[CACHE_WRITE_FAILED] returning uncached blend: %s", e)
        blend = None

    return BlendResult(blend_data=blend_data, blend=blend, cached=False)


def prune_blend_history(db: Session, keep_per_pair: int) -> int:
    """Delete all but the newest `keep_per_pair` rows for every pair. Returns rows deleted."""
    if keep_per_pair < 1:
        raise ValueError("keep_per_pair must be at least 1")

    pairs = db.query(Blend.user1_id, Blend.user2_id).distinct().all()
    deleted = 0
    for user1_id, user2_id in pairs:
        stale_ids = [
            row.id
            for row in (
                db.query(Blend.id)
                .filter(Blend.user1_id == user1_id, Blend.user2_id == user2_id)
                .order_by(Blend.created_at.desc())
                .offset(keep_per_pair)
                .all()
            )
        ]
        if stale_ids:
            deleted += (
                db.query(Blend)
                .filter(Blend.id.in_(stale_ids))
                .delete(synchronize_session=False)
            )
    db.commit()
    logger.info("Pruned %d blend rows across %d pairs (keep_per_pair=%d)", deleted, len(pairs), keep_per_pair)
    return deleted
