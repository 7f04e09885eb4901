from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from electrosense.db import get_db
from electrosense.utils.logging import get_logger

router = APIRouter()
log = get_logger("health")


@router.get("/health", tags=["health"])
def health(db: Session = Depends(get_db)):
    db_ok = False
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        log.error("Health check could not reach the database: %s", e)

    return {"status": "ok" if db_ok else "degraded", "db": db_ok}
