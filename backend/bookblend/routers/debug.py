from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from bookblend.database import get_db
from bookblend.models import User, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["debug"])


@router.get("/test-db")
def test_db(db: Session = Depends(get_db)):
    """Check the database connection by counting cached users."""
    try:
        user_count = db.query(User).count()
    except SQLAlchemyError as e:
        logger.exception("Database connection check failed")
        return JSONResponse(status_code=500, content={"error": f"Database connection failed: {e.__class__.__name__}"})

    return {
        "success": True,
        "message": "Database connection successful",
        "user_count": user_count,
        "timestamp": utcnow().isoformat(),
    }
