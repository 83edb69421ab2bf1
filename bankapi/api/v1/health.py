"""Health check endpoint. Open to anonymous callers."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from bankapi.core.config import Settings, get_settings
from bankapi.core.database import check_db_connected, get_db
from bankapi.schemas.health import HealthResponse, SystemInfo

router = APIRouter()


@router.get("", response_model=HealthResponse)
def healthcheck(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    return HealthResponse(
        system_info=SystemInfo(
            environment=settings.APP_ENV,
            version=request.app.version,
            database="connected" if check_db_connected(db) else "disconnected",
        )
    )
