from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core import config
from app.core.database import get_db
from app.core.responses import error_response, success_response
from app.repositories.user_repository import UserRepository

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health(db: Session = Depends(get_db)):
    database_ok = UserRepository(db).health_check()
    status_payload = {
        "status": "healthy" if database_ok else "unhealthy",
        "database": "connected" if database_ok else "disconnected",
        "environment": config.ENV_NORMALIZED,
        "checkedAt": datetime.now(timezone.utc).isoformat(),
    }
    if not database_ok:
        logger.error("health check failed: database unavailable")
        return error_response(
            "Service unavailable",
            503,
            details=[{"field": "database", "message": "Database connection failed"}],
        )
    return success_response(status_payload)
