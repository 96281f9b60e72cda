"""
Health check endpoints

- /health       - app status plus the last known store state
- /health/live  - app is running
- /health/ready - forced probe of the profile store
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.api.deps import get_store_capability
from clubhub.core.config import settings
from clubhub.core.database import get_db
from clubhub.services.store_capability import StoreCapability

router = APIRouter(prefix="/health", tags=["Health Checks"])


@router.get("")
async def health(
    db: AsyncSession = Depends(get_db),
    capability: StoreCapability = Depends(get_store_capability),
):
    # Cached result; only /ready forces a fresh probe
    ready = await capability.check(db)
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": "ok" if ready else "unavailable",
    }


@router.get("/live")
async def liveness():
    return {"status": "alive", "service": settings.APP_NAME}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_db),
    capability: StoreCapability = Depends(get_store_capability),
):
    ready = await capability.check(db, force=True)
    body = {"status": "ready" if ready else "not_ready", "database": "ok" if ready else "unavailable"}
    if not ready:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body
