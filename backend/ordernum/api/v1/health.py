"""Health check endpoints."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ordernum.db import get_session

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health", operation_id="healthCheck")
async def health_check(session: Annotated[AsyncSession, Depends(get_session)]) -> JSONResponse:
    """Health check endpoint; reports unhealthy when the database is unreachable."""
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Health check: database unreachable", error=str(e))
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unreachable"})
    return JSONResponse(content={"status": "healthy", "database": "ok"})
