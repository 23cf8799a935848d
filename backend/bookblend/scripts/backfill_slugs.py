"""
Backfill share slugs for cached users that don't have one yet.

Rows that already have a slug are never touched.

Run with: python -m bookblend.scripts.backfill_slugs [--dry-run]
"""
import argparse
import sys

from sqlalchemy.orm import Session

from bookblend.database import SessionLocal
from bookblend.models import User
from bookblend.services.user_cache import backfill_missing_slugs


def main(argv=None):
    parser = argparse.ArgumentParser(description="Assign slugs to users missing one")
    parser.add_argument("--dry-run", action="store_true", help="Only report how many users need a slug")
    args = parser.parse_args(argv)

    db: Session = SessionLocal()
    try:
        print("=" * 80)
        print("Slug Backfill")
        print("=" * 80)

        missing = db.query(User).filter(User.slug.is_(None)).count()
        print(f"Users without a slug: {missing}")

        if args.dry_run or missing == 0:
            return 0

        updated = backfill_missing_slugs(db)
        print(f"✅ Assigned slugs to {updated} users")
        return 0
    except Exception as e:
        db.rollback()
        print(f"❌ Error: {e}")
        import traceback
        traceback.print_exc()
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
