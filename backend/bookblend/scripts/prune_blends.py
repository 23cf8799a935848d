"""
Trim blend history, keeping the newest N rows per user pair.

Run with: python -m bookblend.scripts.prune_blends --keep 5
"""
import argparse
import sys

from sqlalchemy.orm import Session

from bookblend.core.config import settings
from bookblend.database import SessionLocal
from bookblend.services.blend_cache import prune_blend_history


def main(argv=None):
    parser = argparse.ArgumentParser(description="Delete old blend rows per user pair")
    parser.add_argument(
        "--keep",
        type=int,
        default=settings.BLEND_RETENTION_PER_PAIR,
        help="Rows to keep per pair (default: BLEND_RETENTION_PER_PAIR)",
    )
    args = parser.parse_args(argv)

    if args.keep < 1:
        print("Nothing to do: --keep must be at least 1 (BLEND_RETENTION_PER_PAIR=0 keeps everything)")
        return 0

    db: Session = SessionLocal()
    try:
        deleted = prune_blend_history(db, args.keep)
        print(f"✅ Deleted {deleted} blend rows (kept newest {args.keep} per pair)")
        return 0
    except Exception as e:
        db.rollback()
        print(f"❌ Error: {e}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
