import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.config import APP_ENV
from storefront.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Database health check failed", exc_info=exc)
        return JSONResponse(
            status_code=503,
            content={"status": "error", "database": "unavailable", "environment": APP_ENV, "timestamp": timestamp},
        )
    return {"status": "ok", "database": "connected", "environment": APP_ENV, "timestamp": timestamp}
